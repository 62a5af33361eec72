from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from modules.orders.dtos import (
    BuyerDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    OrderPricingDTO,
    ShippingAddressDTO,
    ShippingMethodDTO,
)
from modules.orders.factories import build_order_service
from modules.products.dtos import ColorDTO, CreateCategoryDTO, CreateProductDTO
from modules.products.models import Product
from modules.products.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.services import ProductService
from modules.shipping.models import ShippingMethod, ShippingType

BUYERS = [
    BuyerDTO(id="seed-ana", name="Ana Souza", email="ana@example.com", phone="98991110001"),
    BuyerDTO(id="seed-bruna", name="Bruna Lima", email="bruna@example.com", phone="98991110002"),
    BuyerDTO(id="seed-carla", name="Carla Mendes", email="carla@example.com", phone=""),
    BuyerDTO(id="seed-diana", name="Diana Costa", email="diana@example.com", phone="98991110004"),
]

CATALOG = [
    ("Vestidos", "Vestido Midi Floral", Decimal("189.90"), Decimal("159.90"), Decimal("80.00")),
    ("Vestidos", "Vestido Longo Cetim", Decimal("259.90"), None, Decimal("120.00")),
    ("Blusas", "Blusa Cropped Canelada", Decimal("69.90"), None, None),
    ("Blusas", "Camisa Linho Manga Longa", Decimal("129.90"), Decimal("99.90"), Decimal("55.00")),
    ("Saias", "Saia Plissada", Decimal("119.90"), None, Decimal("48.00")),
    ("Conjuntos", "Conjunto Alfaiataria", Decimal("329.90"), Decimal("289.90"), None),
]

SHIPPING_METHODS = [
    ("Retirada na loja", ShippingType.RETIRADA, "", Decimal("0.00"), 0, []),
    (
        "PAC",
        ShippingType.CORREIOS,
        "Correios",
        Decimal("24.90"),
        8,
        [{"region": "nordeste", "cost": "18.90"}],
    ),
    ("SEDEX", ShippingType.CORREIOS, "Correios", Decimal("39.90"), 3, []),
    ("Motoboy São Luís", ShippingType.MOTOBOY, "", Decimal("12.00"), 1, []),
]

SIZES = ["P", "M", "G"]
COLORS = [ColorDTO(name="Preto", hex="#000000"), ColorDTO(name="Rosa", hex="#F4A7B9")]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products = self._seed_catalog()
        methods = self._seed_shipping_methods()
        orders_created = self._seed_orders(products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={len(products)}, "
                f"shipping_methods={methods}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="atendente").exists():
            User.objects.create_user("atendente", password="atendente123", is_staff=True)
            created += 1
        if not User.objects.filter(username="cliente").exists():
            User.objects.create_user("cliente", password="cliente123")
            created += 1
        return created

    def _seed_catalog(self) -> list[Product]:
        self.stdout.write("Creating catalog...")
        categories = CategoryDjangoRepository()
        service = ProductService(ProductDjangoRepository(), categories)

        products: list[Product] = []
        for category_name, name, price, promo, cost in CATALOG:
            category = categories.get_by_slug(category_name.lower())
            if category is None:
                category = service.create_category(CreateCategoryDTO(name=category_name))
            existing = service.list_products({"name": name})
            if existing:
                products.append(existing[0])
                continue
            products.append(
                service.create_product(
                    CreateProductDTO(
                        name=name,
                        price=price,
                        promotional_price=promo,
                        cost_price=cost,
                        category_id=category.id,
                        stock_quantity=random.randint(15, 60),
                        min_stock=5,
                        sizes=SIZES,
                        colors=COLORS,
                    )
                )
            )
        self.stdout.write(self.style.SUCCESS("Creating catalog... Done!"))
        return products

    def _seed_shipping_methods(self) -> int:
        created = 0
        for name, kind, provider, cost, days, region_costs in SHIPPING_METHODS:
            _, was_created = ShippingMethod.objects.get_or_create(
                name=name,
                defaults={
                    "type": kind,
                    "provider": provider,
                    "cost": cost,
                    "estimated_days": days,
                    "region_costs": region_costs,
                },
            )
            created += int(was_created)
        return created

    def _seed_orders(self, products: list[Product]) -> int:
        self.stdout.write("Creating orders...")
        if not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no products)."))
            return 0

        service = build_order_service()
        shipping = ShippingMethodDTO(
            id="seed-pac", name="PAC", type="correios", carrier="Correios", cost=Decimal("18.90")
        )
        address = ShippingAddressDTO(
            zip_code="65075-000",
            street="Avenida dos Holandeses",
            number="100",
            neighborhood="Calhau",
            city="São Luís",
            state="MA",
        )

        created = 0
        for i in range(20):
            lines = random.sample(products, k=random.randint(1, 3))
            result = service.create_order(
                CreateOrderDTO(
                    buyer=random.choice(BUYERS),
                    items=[
                        CreateOrderItemDTO(
                            product_id=product.id,
                            quantity=random.randint(1, 2),
                            size=random.choice(SIZES),
                            color=random.choice(COLORS),
                        )
                        for product in lines
                    ],
                    payment_method=random.choice(
                        [PaymentMethod.PIX, PaymentMethod.CREDIT_CARD, PaymentMethod.BOLETO]
                    ),
                    pricing=OrderPricingDTO(shipping_cost=shipping.cost),
                    shipping_method=shipping,
                    shipping_address=address,
                    idempotency_key=f"seed-order-{i + 1}",
                )
            )
            if not result.success:
                self.stdout.write(self.style.WARNING(f"Order {i + 1} skipped: {result.error}"))
                continue
            created += 1
            if result.value.status == OrderStatus.PENDING:
                self._advance(service, result.value.id)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created

    @staticmethod
    def _advance(service, order_id) -> None:
        """Walk part of the seeded orders through the lifecycle."""
        outcome = random.choices(
            ["pending", "paid", "shipped", "delivered", "cancelled"],
            weights=[0.25, 0.25, 0.2, 0.2, 0.1],
            k=1,
        )[0]
        if outcome == "pending":
            return
        if outcome == "cancelled":
            service.cancel_order(order_id, reason="Seed", changed_by="seed").unwrap()
            return

        service.update_payment_status(order_id, PaymentStatus.RECEIVED, changed_by="seed").unwrap()
        if outcome in ("shipped", "delivered"):
            service.update_order_status(
                order_id, OrderStatus.SHIPPED, tracking_code="BR123456789BR", changed_by="seed"
            ).unwrap()
        if outcome == "delivered":
            service.update_order_status(order_id, OrderStatus.DELIVERED, changed_by="seed").unwrap()
