# inventory/api/urls.py

from django.urls import path

from inventory.api.views import ItemMovementHistoryView

urlpatterns = [
    path(
        "items/<int:item_id>/movements/",
        ItemMovementHistoryView.as_view(),
        name="item-movements",
    ),
]
