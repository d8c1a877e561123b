"""Unit tests for the catalog services."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

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
from modules.catalog.models import Product, ProductStatus
from modules.catalog.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
    ReviewDjangoRepository,
)
from modules.catalog.services import CategoryService, ProductService, ReviewService

pytestmark = pytest.mark.unit


@pytest.fixture()
def product_service():
    return ProductService(
        repository=ProductDjangoRepository(),
        category_repository=CategoryDjangoRepository(),
    )


@pytest.fixture()
def category_service():
    return CategoryService(repository=CategoryDjangoRepository())


@pytest.fixture()
def review_service():
    return ReviewService(
        repository=ReviewDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


class TestProductService:
    def test_create_product(self, product_service, category):
        product = product_service.create_product(
            CreateProductDTO(
                name="  Stapler ",
                price=Decimal("9.90"),
                stock_quantity=4,
                category_id=category.id,
            )
        )
        assert product.name == "Stapler"
        assert product.status == ProductStatus.ACTIVE
        assert product.category_id == category.id

    def test_create_with_unknown_category(self, product_service):
        with pytest.raises(CategoryNotFound):
            product_service.create_product(
                CreateProductDTO(name="Pen", price=Decimal("1.00"), category_id=uuid4())
            )

    def test_update_only_supplied_fields(self, product_service, product):
        updated = product_service.update_product(
            str(product.id), UpdateProductDTO(price=Decimal("12.00"))
        )
        assert updated.price == Decimal("12.00")
        assert updated.name == "Product A"
        assert updated.stock_quantity == 10

    def test_update_missing_product(self, product_service):
        with pytest.raises(ProductNotFound):
            product_service.update_product(str(uuid4()), UpdateProductDTO(name="X"))

    def test_delete_is_soft(self, product_service, product):
        product_service.delete_product(str(product.id))
        assert Product.objects.filter(id=product.id).exists()
        with pytest.raises(ProductNotFound):
            product_service.get_product(str(product.id))

    def test_list_hides_inactive_by_default(self, product_service, make_product):
        make_product(name="Visible")
        make_product(name="Hidden", status=ProductStatus.INACTIVE)
        names = {p.name for p in product_service.list_products()}
        assert names == {"Visible"}
        names = {p.name for p in product_service.list_products(include_inactive=True)}
        assert names == {"Visible", "Hidden"}


class TestProductDTOs:
    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="Pen", price=Decimal("-0.01"))

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="Pen", price=Decimal("1.00"), stock_quantity=-1)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="   ", price=Decimal("1.00"))

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            UpdateProductDTO(status="archived")


class TestCategoryService:
    def test_create_and_duplicate(self, category_service):
        category_service.create_category(CreateCategoryDTO(name="Books"))
        with pytest.raises(CategoryAlreadyExists):
            category_service.create_category(CreateCategoryDTO(name="books"))

    def test_rename_to_existing_name(self, category_service, category):
        other = category_service.create_category(CreateCategoryDTO(name="Garden"))
        with pytest.raises(CategoryAlreadyExists):
            category_service.update_category(
                str(other.id), UpdateCategoryDTO(name=category.name)
            )

    def test_delete_keeps_products(self, category_service, category, make_product):
        product = make_product(category=category)
        category_service.delete_category(str(category.id))
        product.refresh_from_db()
        assert product.category_id is None

    def test_delete_missing(self, category_service):
        with pytest.raises(CategoryNotFound):
            category_service.delete_category(str(uuid4()))


class TestReviewService:
    def test_add_review_and_average(self, review_service, product, user, other_user):
        review_service.add_review(
            CreateReviewDTO(product_id=product.id, user_id=user.id, rating=5)
        )
        review_service.add_review(
            CreateReviewDTO(product_id=product.id, user_id=other_user.id, rating=4)
        )
        assert review_service.average_rating(str(product.id)) == Decimal("4.5")
        assert len(review_service.list_reviews(str(product.id))) == 2

    def test_one_review_per_user(self, review_service, product, user):
        dto = CreateReviewDTO(product_id=product.id, user_id=user.id, rating=3)
        review_service.add_review(dto)
        with pytest.raises(ReviewAlreadyExists):
            review_service.add_review(dto)

    def test_no_reviews_means_no_average(self, review_service, product):
        assert review_service.average_rating(str(product.id)) is None

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, rating, product, user):
        with pytest.raises(ValidationError):
            CreateReviewDTO(product_id=product.id, user_id=user.id, rating=rating)

    def test_review_unknown_product(self, review_service, user):
        with pytest.raises(ProductNotFound):
            review_service.add_review(
                CreateReviewDTO(product_id=uuid4(), user_id=user.id, rating=4)
            )
