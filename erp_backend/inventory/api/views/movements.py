# inventory/api/views/movements.py

"""
PATH: inventory/api/views/movements.py

ITEM MOVEMENT HISTORY API (READ-ONLY)

GET /api/inventory/items/<id>/movements/?date_from=&date_to=&kind=RECEIPT&kind=CONSUME
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.query_params import date_range_params
from inventory.models import Item
from inventory.services.costing import item_valuation
from inventory.services.movements import MovementKind, get_item_movement_history


def _kinds(request) -> list[str] | None:
    raw = [k.strip().upper() for k in request.query_params.getlist("kind") if k.strip()]
    if not raw:
        return None
    valid = {k.value for k in MovementKind}
    unknown = sorted(set(raw) - valid)
    if unknown:
        raise ValidationError({"kind": f"Unknown movement kind(s): {', '.join(unknown)}"})
    return raw


@extend_schema(
    tags=["inventory"],
    parameters=[
        OpenApiParameter(
            name="date_from",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="First day included (YYYY-MM-DD). Earlier movements form the opening quantity.",
        ),
        OpenApiParameter(
            name="date_to",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Last day included (YYYY-MM-DD).",
        ),
        OpenApiParameter(
            name="kind",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            many=True,
            enum=[k.value for k in MovementKind],
            description="Restrict to movement kinds (repeatable).",
        ),
    ],
    responses={200: dict, 400: dict, 404: dict},
)
class ItemMovementHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, item_id: int):
        try:
            item = Item.objects.get(pk=item_id)
        except Item.DoesNotExist:
            return Response({"detail": "Item not found"}, status=status.HTTP_404_NOT_FOUND)

        date_from, date_to = date_range_params(request)
        movements = list(
            get_item_movement_history(
                item, date_from=date_from, date_to=date_to, kinds=_kinds(request)
            )
        )

        return Response(
            {
                "item_id": item.pk,
                "sku": item.sku,
                "item_class": item.item_class,
                "quantity_on_hand": int(item.quantity_on_hand),
                "valuation": item_valuation(item) if item.is_stocked else 0,
                "movements": movements,
            },
            status=status.HTTP_200_OK,
        )
