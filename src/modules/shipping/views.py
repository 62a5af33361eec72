"""Shipping API views.

- ``POST /api/v1/shipping/quotes/``: public quote for a destination CEP.
- ``/api/v1/shipping/methods/``: active methods are public; writes are
  back-office only.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.permissions import IsBackOffice
from modules.shipping.dtos import ShippingQuoteRequestDTO
from modules.shipping.factories import build_quote_service
from modules.shipping.models import ShippingMethod
from modules.shipping.serializers import (
    ShippingMethodSerializer,
    ShippingQuoteRequestSerializer,
    ShippingQuoteSerializer,
)


class ShippingQuoteView(APIView):
    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = ShippingQuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = ShippingQuoteRequestDTO(
                zip_code=data["zip_code"],
                state=data.get("state") or None,
                order_value=data["order_value"],
                item_count=data["item_count"],
                weight_kg=data["weight_kg"],
            )
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        quotes = build_quote_service().quote(dto)
        return Response(
            {"quotes": ShippingQuoteSerializer([q.model_dump() for q in quotes], many=True).data}
        )


class ShippingMethodViewSet(viewsets.ModelViewSet):
    serializer_class = ShippingMethodSerializer
    pagination_class = None

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [AllowAny()]
        return [IsBackOffice()]

    def get_queryset(self):
        queryset = ShippingMethod.objects.all()
        if not IsBackOffice().has_permission(self.request, self):
            queryset = queryset.filter(is_active=True)
        return queryset
