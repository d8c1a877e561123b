from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.dtos import CreateAddressDTO
from modules.accounts.models import Profile, ProfileRole
from modules.accounts.repositories.django_repository import AddressDjangoRepository
from modules.accounts.services import AddressBookService
from modules.catalog.models import Category, Product, ProductStatus


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        categories = self._seed_categories()
        products = self._seed_products(categories)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"categories={len(categories)}, "
                f"products={len(products)}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            admin = User.objects.create_superuser(
                "admin", email="admin@storefront.local", password="admin123"
            )
            Profile.objects.get_or_create(
                user=admin,
                defaults={"full_name": "Store Admin", "role": ProfileRole.ADMIN},
            )
            created += 1

        address_book = AddressBookService(repository=AddressDjangoRepository())
        customers = [
            ("ana", "Ana Souza", "Rua das Flores 10", "Lisbon", "1100-001", "Portugal"),
            ("bruno", "Bruno Lima", "Main Street 5", "Dublin", "D02 X285", "Ireland"),
            ("carla", "Carla Mendes", "Calle Mayor 3", "Madrid", "28013", "Spain"),
        ]
        for username, full_name, street, city, postal_code, country in customers:
            if User.objects.filter(username=username).exists():
                continue
            user = User.objects.create_user(
                username, email=f"{username}@example.com", password=f"{username}123"
            )
            Profile.objects.create(user=user, full_name=full_name)
            address_book.add_address(
                user.id,
                CreateAddressDTO(
                    name=full_name,
                    street=street,
                    city=city,
                    postal_code=postal_code,
                    country=country,
                ),
            )
            created += 1
        return created

    def _seed_categories(self) -> dict[str, Category]:
        self.stdout.write("Creating categories...")
        categories: dict[str, Category] = {}
        for name, description in [
            ("Electronics", "Monitors, keyboards and other gear"),
            ("Furniture", "Desks, chairs and storage"),
            ("Office", "Paper, pens and desk supplies"),
        ]:
            category, _ = Category.objects.get_or_create(
                name=name, defaults={"description": description}
            )
            categories[name] = category
        self.stdout.write(self.style.SUCCESS("Creating categories... Done!"))
        return categories

    def _seed_products(self, categories: dict[str, Category]) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ('Monitor 27"', "Electronics", Decimal("279.90")),
            ("Mechanical Keyboard", "Electronics", Decimal("89.90")),
            ("Gaming Mouse", "Electronics", Decimal("49.90")),
            ("Headset", "Electronics", Decimal("59.90")),
            ("Office Desk", "Furniture", Decimal("199.00")),
            ("Ergonomic Chair", "Furniture", Decimal("329.00")),
            ("Bookcase", "Furniture", Decimal("149.00")),
            ("A4 Paper", "Office", Decimal("6.90")),
            ("Blue Pen", "Office", Decimal("1.20")),
            ("Notebook", "Office", Decimal("4.50")),
            ("Stapler", "Office", Decimal("9.90")),
            ("Laptop Stand", "Office", Decimal("34.90")),
        ]
        for name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": f"{name} ({category.lower()})",
                    "price": price,
                    "stock_quantity": random.randint(0, 60),
                    "category": categories[category],
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products
