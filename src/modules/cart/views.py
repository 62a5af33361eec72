"""Cart API views.

Authenticated buyers own the cart stored under their identity.  Guests
carry an opaque cart id in the ``X-Cart-Id`` header; one is issued on the
first response when missing.  After login, ``/cart/merge/`` folds the
guest cart into the buyer's cart.
"""

from __future__ import annotations

import uuid

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.cart.cart import Cart
from modules.cart.serializers import (
    AddCartItemSerializer,
    MergeCartSerializer,
    UpdateCartOptionsSerializer,
    UpdateCartQuantitySerializer,
)
from modules.cart.services import CartService
from modules.cart.storage import CartStore
from modules.core.results import HTTP_STATUS_BY_CODE, DomainError, error_response
from modules.orders.dtos import BuyerDTO
from modules.orders.factories import build_order_service
from modules.orders.serializers import CheckoutSerializer, OrderSerializer
from modules.orders.views import build_create_order_dto
from modules.products.dtos import ColorDTO
from modules.products.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.services import ProductService

CART_ID_HEADER = "X-Cart-Id"


def _service() -> CartService:
    return CartService(
        store=CartStore(),
        product_service=ProductService(
            repository=ProductDjangoRepository(),
            category_repository=CategoryDjangoRepository(),
        ),
    )


def _error(exc: DomainError) -> Response:
    return Response(
        {"detail": exc.message, "code": exc.code.value},
        status=HTTP_STATUS_BY_CODE[exc.code],
    )


def _cart_payload(cart: Cart) -> dict:
    totals = cart.calculate_totals()
    return {
        "items": [
            {**item.model_dump(mode="json"), "line_total": str(item.line_total)}
            for item in cart.items
        ],
        "item_count": cart.item_count(),
        "subtotal": str(totals.subtotal),
        "total": str(totals.total),
        "updated_at": cart.updated_at.isoformat(),
    }


def _color(data) -> ColorDTO | None:
    return ColorDTO(**data) if data else None


class CartOwnerMixin:
    """Resolves the cart owner key for the current request."""

    def cart_owner(self, request: Request) -> str:
        if request.user and request.user.is_authenticated:
            return f"user:{BuyerDTO.from_principal(request.user).id}"
        if not getattr(request, "_guest_cart_id", None):
            request._guest_cart_id = request.headers.get(CART_ID_HEADER) or uuid.uuid4().hex
        return f"guest:{request._guest_cart_id}"

    def cart_response(self, request: Request, cart: Cart, **kwargs) -> Response:
        response = Response(_cart_payload(cart), **kwargs)
        guest_id = getattr(request, "_guest_cart_id", None)
        if guest_id:
            response[CART_ID_HEADER] = guest_id
        return response


class CartView(CartOwnerMixin, APIView):
    """GET/POST/PATCH/DELETE /api/v1/cart/"""

    permission_classes = [AllowAny]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _service()

    def get(self, request: Request) -> Response:
        return self.cart_response(request, self._service.get_cart(self.cart_owner(request)))

    def post(self, request: Request) -> Response:
        """Add an item (merges with an identical product/size/color line)."""
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            color = _color(data.get("color"))
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            cart = self._service.add_item(
                self.cart_owner(request),
                data["product_id"],
                quantity=data["quantity"],
                size=data.get("size") or None,
                color=color,
            )
        except DomainError as exc:
            return _error(exc)
        return self.cart_response(request, cart, status=status.HTTP_201_CREATED)

    def patch(self, request: Request) -> Response:
        """Set a line's quantity; zero removes the line."""
        serializer = UpdateCartQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            cart = self._service.update_quantity(
                self.cart_owner(request),
                data["product_id"],
                data["quantity"],
                size=data.get("size") or None,
                color_name=data.get("color_name") or None,
            )
        except DomainError as exc:
            return _error(exc)
        return self.cart_response(request, cart)

    def delete(self, request: Request) -> Response:
        self._service.clear(self.cart_owner(request))
        return self.cart_response(request, Cart())


class CartOptionsView(CartOwnerMixin, APIView):
    """PATCH /api/v1/cart/options/: change a line's size or color."""

    permission_classes = [AllowAny]

    def patch(self, request: Request) -> Response:
        serializer = UpdateCartOptionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            new_color = _color(data.get("new_color"))
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            cart = _service().update_item_options(
                self.cart_owner(request),
                data["product_id"],
                data.get("size") or None,
                data.get("color_name") or None,
                data.get("new_size") or None,
                new_color,
            )
        except DomainError as exc:
            return _error(exc)
        return self.cart_response(request, cart)


class CartMergeView(CartOwnerMixin, APIView):
    """POST /api/v1/cart/merge/: fold a guest cart into the buyer's cart."""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = MergeCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = _service().merge_guest_cart(
            f"guest:{serializer.validated_data['guest_cart_id']}", self.cart_owner(request)
        )
        return self.cart_response(request, cart)


class CartCheckoutView(CartOwnerMixin, APIView):
    """POST /api/v1/cart/checkout/

    Turns the cart into an order (``Idempotency-Key`` header supported)
    and clears the cart once the order exists.
    """

    permission_classes = [IsAuthenticated]
    throttle_scope = "checkout"

    def post(self, request: Request) -> Response:
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = _service()
        owner = self.cart_owner(request)
        cart = service.get_cart(owner)
        if cart.is_empty():
            return Response(
                {"detail": "Cart is empty.", "code": "VALIDATION"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            dto = build_create_order_dto(
                request,
                serializer.validated_data,
                cart.to_order_items(),
                request.headers.get("Idempotency-Key"),
            )
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        result = build_order_service().create_order(dto)
        if not result.success:
            return error_response(result)

        service.clear(owner)
        return Response(OrderSerializer(result.value).data, status=status.HTTP_201_CREATED)
