"""Catalog API views.

Exposes ``ProductService`` via HTTP using DRF ViewSets.  Buyers and
anonymous visitors read active products; writes and the low-stock report
are back-office only.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.permissions import IsBackOffice
from modules.core.results import DomainError, HTTP_STATUS_BY_CODE
from modules.products.dtos import CreateCategoryDTO, CreateProductDTO, UpdateProductDTO
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.serializers import (
    BackOfficeProductSerializer,
    CategorySerializer,
    ProductSerializer,
)
from modules.products.services import ProductService

_PUBLIC_ACTIONS = {"list", "retrieve"}

_WRITABLE_FIELDS = (
    "name",
    "price",
    "description",
    "cost_price",
    "promotional_price",
    "images",
    "category_id",
    "stock_quantity",
    "min_stock",
    "sizes",
    "colors",
    "is_active",
)


def _service() -> ProductService:
    return ProductService(
        repository=ProductDjangoRepository(),
        category_repository=CategoryDjangoRepository(),
    )


def _error(exc: DomainError) -> Response:
    return Response(
        {"detail": exc.message, "code": exc.code.value},
        status=HTTP_STATUS_BY_CODE[exc.code],
    )


def _is_back_office(request: Request) -> bool:
    return IsBackOffice().has_permission(request, None)


class ProductViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for Product CRUD operations.

    All ORM access goes through the service/repository layer.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "description"]
    ordering_fields = ["name", "price", "stock_quantity", "created_at"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.alive()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _service()

    def get_permissions(self):
        if self.action in _PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsBackOffice()]

    def get_serializer_class(self):
        if _is_back_office(self.request):
            return BackOfficeProductSerializer
        return ProductSerializer

    def get_queryset(self):
        queryset = Product.objects.alive().select_related("category")
        if not _is_back_office(self.request):
            queryset = queryset.filter(is_active=True)
        return queryset

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk)
        except DomainError as exc:
            return _error(exc)
        if not product.is_active and not _is_back_office(request):
            return Response(
                {"detail": "Product not found.", "code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        serializer_class = self.get_serializer_class()
        return Response(serializer_class(product).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        try:
            dto = CreateProductDTO(**_payload(request.data))
        except (PydanticValidationError, ValueError, TypeError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = self._service.create_product(dto)
        except DomainError as exc:
            return _error(exc)
        return Response(
            BackOfficeProductSerializer(product).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        try:
            dto = UpdateProductDTO(**_payload(request.data))
        except (PydanticValidationError, ValueError, TypeError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = self._service.update_product(pk, dto)
        except DomainError as exc:
            return _error(exc)
        return Response(BackOfficeProductSerializer(product).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/products/{pk}/"""
        return self.partial_update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/ (soft delete)"""
        try:
            self._service.delete_product(pk)
        except DomainError as exc:
            return _error(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request: Request) -> Response:
        """GET /api/v1/products/low-stock/"""
        products = self._service.list_low_stock()
        return Response(BackOfficeProductSerializer(products, many=True).data)


class CategoryViewSet(GenericViewSet):
    """Public category listing; back-office creation."""

    serializer_class = CategorySerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _service()

    def get_permissions(self):
        if self.action == "list":
            return [AllowAny()]
        return [IsBackOffice()]

    def list(self, request: Request) -> Response:
        """GET /api/v1/categories/"""
        categories = self._service.list_categories(
            active_only=not _is_back_office(request)
        )
        return Response(CategorySerializer(categories, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/categories/"""
        data = request.data
        try:
            dto = CreateCategoryDTO(
                **{
                    key: data[key]
                    for key in (
                        "name",
                        "slug",
                        "description",
                        "image",
                        "parent_id",
                        "order",
                        "is_active",
                    )
                    if key in data
                }
            )
        except (PydanticValidationError, ValueError, TypeError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            category = self._service.create_category(dto)
        except DomainError as exc:
            return _error(exc)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)


def _payload(data) -> dict:
    return {key: data[key] for key in _WRITABLE_FIELDS if key in data}
