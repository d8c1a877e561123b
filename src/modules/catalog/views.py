"""Catalog API views.

Exposes the catalog services via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes. The view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.catalog.dtos import (
    CreateCategoryDTO,
    CreateProductDTO,
    CreateReviewDTO,
    UpdateCategoryDTO,
    UpdateProductDTO,
)
from modules.catalog.exceptions import (
    CategoryAlreadyExists,
    CategoryNotFound,
    ProductNotFound,
    ReviewAlreadyExists,
)
from modules.catalog.filters import ProductFilter
from modules.catalog.models import Category, Product
from modules.catalog.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
    ReviewDjangoRepository,
)
from modules.catalog.serializers import (
    CategorySerializer,
    CreateReviewSerializer,
    ProductSerializer,
    ReviewSerializer,
)
from modules.catalog.services import CategoryService, ProductService, ReviewService
from modules.core.permissions import IsStoreAdminOrReadOnly, is_store_admin


def _validation_error(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class ProductViewSet(ListModelMixin, GenericViewSet):
    """Public product browsing; writes are restricted to store admins.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    permission_classes = [IsStoreAdminOrReadOnly]
    filterset_class = ProductFilter
    search_fields = ["name", "description"]
    ordering_fields = ["name", "price", "stock_quantity", "created_at"]
    ordering = ["name", "id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.all()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        product_repo = ProductDjangoRepository()
        self._service = ProductService(
            repository=product_repo,
            category_repository=CategoryDjangoRepository(),
        )
        self._reviews = ReviewService(
            repository=ReviewDjangoRepository(),
            product_repository=product_repo,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_products(
            include_inactive=is_store_admin(self.request.user)
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk or "")
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        data = ProductSerializer(product).data
        data["average_rating"] = self._reviews.average_rating(str(product.id))
        return Response(data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy (admin)
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        data = request.data
        try:
            dto = CreateProductDTO(
                name=data.get("name", ""),
                price=data.get("price", 0),
                description=data.get("description", ""),
                stock_quantity=data.get("stock_quantity", 0),
                category_id=data.get("category_id") or None,
                image_url=data.get("image_url", ""),
            )
        except (PydanticValidationError, ValueError) as exc:
            return _validation_error(exc)

        try:
            product = self._service.create_product(dto)
        except CategoryNotFound as exc:
            return _validation_error(exc)

        return Response(
            ProductSerializer(product).data, status=status.HTTP_201_CREATED
        )

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/products/{pk}/"""
        data = request.data
        try:
            dto = UpdateProductDTO(
                name=data.get("name"),
                price=data.get("price"),
                description=data.get("description"),
                stock_quantity=data.get("stock_quantity"),
                category_id=data.get("category_id") or None,
                image_url=data.get("image_url"),
                status=data.get("status"),
            )
        except (PydanticValidationError, ValueError) as exc:
            return _validation_error(exc)

        try:
            product = self._service.update_product(pk or "", dto)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except CategoryNotFound as exc:
            return _validation_error(exc)

        return Response(ProductSerializer(product).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        try:
            self._service.delete_product(pk or "")
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    @action(
        detail=True,
        methods=["get", "post"],
        permission_classes=[IsAuthenticatedOrReadOnly],
    )
    def reviews(self, request: Request, pk: str | None = None) -> Response:
        """GET/POST /api/v1/products/{pk}/reviews/"""
        if request.method == "GET":
            try:
                reviews = self._reviews.list_reviews(pk or "")
            except ProductNotFound:
                return Response(
                    {"detail": "Product not found."},
                    status=status.HTTP_404_NOT_FOUND,
                )
            return Response(ReviewSerializer(reviews, many=True).data)

        serializer = CreateReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            review = self._reviews.add_review(
                CreateReviewDTO(
                    product_id=pk,
                    user_id=request.user.id,
                    **serializer.validated_data,
                )
            )
        except (PydanticValidationError, ProductNotFound):
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except ReviewAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class CategoryViewSet(GenericViewSet):
    permission_classes = [IsStoreAdminOrReadOnly]
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CategoryService(repository=CategoryDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/categories/"""
        categories = self._service.list_categories()
        return Response(CategorySerializer(categories, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            category = self._service.get_category(pk or "")
        except CategoryNotFound:
            return Response(
                {"detail": "Category not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(CategorySerializer(category).data)

    def create(self, request: Request) -> Response:
        try:
            dto = CreateCategoryDTO(
                name=request.data.get("name", ""),
                description=request.data.get("description", ""),
            )
        except (PydanticValidationError, ValueError) as exc:
            return _validation_error(exc)
        try:
            category = self._service.create_category(dto)
        except CategoryAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(
            CategorySerializer(category).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        try:
            dto = UpdateCategoryDTO(
                name=request.data.get("name"),
                description=request.data.get("description"),
            )
        except (PydanticValidationError, ValueError) as exc:
            return _validation_error(exc)
        try:
            category = self._service.update_category(pk or "", dto)
        except CategoryNotFound:
            return Response(
                {"detail": "Category not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except CategoryAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(CategorySerializer(category).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        try:
            self._service.delete_category(pk or "")
        except CategoryNotFound:
            return Response(
                {"detail": "Category not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
