# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.view import JournalEntryViewSet
from accounting.api.views import (
    AccountLedgerView,
    AccountListView,
    ReconciliationReportView,
    TrialBalanceView,
)

router = DefaultRouter()
router.register("journal-entries", JournalEntryViewSet, basename="journal-entry")

urlpatterns = [
    path("", include(router.urls)),
    # Reports
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("reconciliation/", ReconciliationReportView.as_view(), name="reconciliation"),
    # Master data
    path("accounts/", AccountListView.as_view(), name="accounts"),
    path("accounts/<str:code>/ledger/", AccountLedgerView.as_view(), name="account-ledger"),
]
