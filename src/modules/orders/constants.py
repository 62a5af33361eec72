"""Order domain constants.

Status choices, the allowed-transition table of the order state machine
and the payment-status to order-status mapping.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pendente"
    PAID = "PAID", "Pago"
    SHIPPED = "SHIPPED", "Enviado"
    DELIVERED = "DELIVERED", "Entregue"
    CANCELLED = "CANCELLED", "Cancelado"
    REFUNDED = "REFUNDED", "Reembolsado"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pendente"
    CONFIRMED = "CONFIRMED", "Confirmado"
    RECEIVED = "RECEIVED", "Recebido"
    OVERDUE = "OVERDUE", "Vencido"
    CANCELLED = "CANCELLED", "Cancelado"
    REFUNDED = "REFUNDED", "Reembolsado"


class PaymentMethod(models.TextChoices):
    PIX = "PIX", "PIX"
    CREDIT_CARD = "CREDIT_CARD", "Cartão de crédito"
    DEBIT_CARD = "DEBIT_CARD", "Cartão de débito"
    BOLETO = "BOLETO", "Boleto"
    CASH = "CASH", "Dinheiro"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}

# Cancellation is refused once goods left the store.
NON_CANCELLABLE_STATES: set[str] = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}

# Order statuses at or beyond settlement.
SETTLED_STATES: set[str] = {
    OrderStatus.PAID,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.REFUNDED,
}

PAYMENT_TO_ORDER_STATUS: dict[str, str] = {
    PaymentStatus.CONFIRMED: OrderStatus.PAID,
    PaymentStatus.RECEIVED: OrderStatus.PAID,
    PaymentStatus.CANCELLED: OrderStatus.CANCELLED,
    PaymentStatus.REFUNDED: OrderStatus.REFUNDED,
}

PICKUP_SHIPPING_METHOD = {
    "id": "pdv",
    "name": "Retirada/Presencial",
    "type": "retirada",
    "cost": "0.00",
    "estimated_days": 0,
}

PICKUP_ADDRESS = {
    "street": "Retirada em loja",
    "number": "PDV",
}

# Methods settled at the counter when a point-of-sale sale completes.
POS_SETTLED_METHODS: set[str] = {
    PaymentMethod.CASH,
    PaymentMethod.CREDIT_CARD,
    PaymentMethod.DEBIT_CARD,
    PaymentMethod.PIX,
}
