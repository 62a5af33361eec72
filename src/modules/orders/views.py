"""Order API views.

Exposes ``OrderService`` via HTTP using DRF ViewSets.  Failed results
are translated with ``error_response`` (``{"detail", "code"}`` and the
status mapped from the error code).

Buyers create, read and cancel their own orders; status and payment
updates, full listings and point-of-sale sales are back-office only.
"""

from __future__ import annotations

from decimal import Decimal

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsBackOffice
from modules.core.results import error_response
from modules.orders.dtos import (
    BuyerDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    OrderPricingDTO,
    PaymentReferencesDTO,
    ShippingAddressDTO,
    ShippingMethodDTO,
)
from modules.orders.factories import build_order_service, build_pos_service
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.pos import PointOfSaleSaleDTO
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    PointOfSaleSaleSerializer,
    UpdatePaymentStatusSerializer,
    UpdateStatusSerializer,
)
from modules.payments.factories import build_payment_service

_BACK_OFFICE_ACTIONS = {"partial_update", "payment_status"}


def is_back_office(request: Request) -> bool:
    return IsBackOffice().has_permission(request, None)


def build_create_order_dto(
    request: Request, data: dict, items: list, idempotency_key: str | None
) -> CreateOrderDTO:
    """Build the checkout DTO from validated serializer data.

    Only back-office users may grant a discount.
    """
    discount = data.get("discount") or Decimal("0")
    if not is_back_office(request):
        discount = Decimal("0")
    shipping_method = ShippingMethodDTO(**data["shipping_method"])
    return CreateOrderDTO(
        buyer=BuyerDTO.from_principal(request.user),
        items=[CreateOrderItemDTO(**item) for item in items],
        payment_method=data["payment_method"],
        pricing=OrderPricingDTO(shipping_cost=shipping_method.cost, discount=discount),
        shipping_method=shipping_method,
        shipping_address=ShippingAddressDTO(**data["shipping_address"]),
        notes=data.get("notes", ""),
        idempotency_key=idempotency_key,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does not extend ``ModelViewSet``: all writes go through
    ``OrderService``.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "buyer_name", "buyer_email"]
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action in _BACK_OFFICE_ACTIONS:
            return [IsBackOffice()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        if self.action == "create":
            self.throttle_scope = "checkout"
        elif self.action in {"list", "retrieve", "by_number"}:
            self.throttle_scope = "order_listing"
        else:
            self.throttle_scope = None
        return super().get_throttles()

    def get_queryset(self):
        queryset = Order.objects.all()
        if not is_back_office(self.request):
            queryset = queryset.filter(buyer_id=BuyerDTO.from_principal(self.request.user).id)
        return queryset

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = build_create_order_dto(
                request, data, data["items"], request.headers.get("Idempotency-Key")
            )
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        result = self._service.create_order(dto)
        if not result.success:
            return error_response(result)
        return Response(OrderSerializer(result.value).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Back-office users see every order; buyers see their own.
        """
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(OrderListSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        result = self._service.get_order(pk)
        return self._owned_order_response(request, result)

    @action(detail=False, methods=["get"], url_path=r"by-number/(?P<number>[^/.]+)")
    def by_number(self, request: Request, number: str | None = None) -> Response:
        """GET /api/v1/orders/by-number/{number}/"""
        result = self._service.get_order_by_number(number)
        return self._owned_order_response(request, result)

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Body: ``status`` plus optional ``tracking_code`` and ``notes``.
        """
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = self._service.update_order_status(
            pk,
            data["status"],
            tracking_code=data.get("tracking_code") or None,
            notes=data.get("notes", ""),
            changed_by=_actor(request),
        )
        if not result.success:
            return error_response(result)
        return Response(OrderSerializer(result.value).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels the provider charge when there is one, then the order
        (restoring stock). Rejected once the order has shipped.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if not is_back_office(request):
            owned = self._service.get_order(pk)
            if not owned.success or not self._owns(request, owned.value):
                return Response(
                    {"detail": "Order not found.", "code": "NOT_FOUND"},
                    status=status.HTTP_404_NOT_FOUND,
                )

        result = build_payment_service().cancel(
            pk, reason=serializer.validated_data["reason"], changed_by=_actor(request)
        )
        if not result.success:
            return error_response(result)
        return Response(OrderSerializer(result.value).data)

    @action(detail=True, methods=["post"], url_path="payment-status")
    def payment_status(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/payment-status/"""
        serializer = UpdatePaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        references = PaymentReferencesDTO(
            payment_id=data.get("payment_id"),
            qr_code=data.get("qr_code"),
            qr_payload=data.get("qr_payload"),
            payment_link=data.get("payment_link"),
        )
        result = self._service.update_payment_status(
            pk, data["payment_status"], references, changed_by=_actor(request)
        )
        if not result.success:
            return error_response(result)
        return Response(OrderSerializer(result.value).data)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _owned_order_response(self, request: Request, result) -> Response:
        if not result.success:
            return error_response(result)
        if not is_back_office(request) and not self._owns(request, result.value):
            return Response(
                {"detail": "Order not found.", "code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(OrderSerializer(result.value).data)

    @staticmethod
    def _owns(request: Request, order: Order) -> bool:
        return order.buyer_id == BuyerDTO.from_principal(request.user).id


class PointOfSaleSaleView(APIView):
    """POST /api/v1/pos/sales/: in-store sale settled at the counter."""

    permission_classes = [IsBackOffice]

    def post(self, request: Request) -> Response:
        serializer = PointOfSaleSaleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        attendant = BuyerDTO.from_principal(request.user)

        try:
            dto = PointOfSaleSaleDTO(
                attendant_id=attendant.id,
                attendant_name=attendant.name,
                customer_name=data["customer_name"],
                customer_phone=data["customer_phone"],
                items=[CreateOrderItemDTO(**item) for item in data["items"]],
                payment_method=data["payment_method"],
                discount=data["discount"],
                idempotency_key=request.headers.get("Idempotency-Key"),
            )
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        result = build_pos_service().complete_sale(dto)
        if not result.success:
            return error_response(result)
        return Response(OrderSerializer(result.value).data, status=status.HTTP_201_CREATED)


def _actor(request: Request) -> str:
    return BuyerDTO.from_principal(request.user).id
