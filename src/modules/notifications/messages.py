"""Message formatting for customer and store notifications.

Texts are in Brazilian Portuguese, amounts in BRL (``R$ 1.234,56``) and
phone numbers normalized to the ``55…`` international form.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING
from urllib.parse import quote

from django.conf import settings

if TYPE_CHECKING:
    from modules.orders.dtos import OrderSummaryDTO

PAYMENT_METHOD_LABELS = {
    "PIX": "PIX",
    "CREDIT_CARD": "Cartão de Crédito",
    "DEBIT_CARD": "Cartão de Débito",
    "CASH": "Dinheiro",
    "BOLETO": "Boleto",
}

PICKUP_TYPE = "retirada"


def format_brl(value: Decimal) -> str:
    amount = Decimal(value).quantize(Decimal("0.01"), ROUND_HALF_UP)
    integer, _, cents = f"{abs(amount):.2f}".partition(".")
    groups = []
    while integer:
        groups.insert(0, integer[-3:])
        integer = integer[:-3]
    sign = "-" if amount < 0 else ""
    return f"{sign}R$ {'.'.join(groups)},{cents}"


def normalize_phone(phone: str) -> str:
    digits = "".join(ch for ch in phone or "" if ch.isdigit())
    if not digits or digits.startswith("55"):
        return digits
    return f"55{digits}"


def tracking_link(order_id) -> str:
    return f"{settings.STORE_URL.rstrip('/')}/pedido/{order_id}"


def whatsapp_link(phone: str, message: str) -> str:
    return f"https://wa.me/{normalize_phone(phone)}?text={quote(message)}"


def payment_label(method: str) -> str:
    return PAYMENT_METHOD_LABELS.get(method, method)


def _item_lines(summary: OrderSummaryDTO) -> str:
    return "\n".join(
        f"{item.quantity}x {item.name} - {format_brl(item.subtotal)}" for item in summary.items
    )


def _signature() -> str:
    return f"---\n{settings.STORE_NAME}\n{settings.STORE_URL}"


# ---------------------------------------------------------------------------
# E-mail
# ---------------------------------------------------------------------------


def order_confirmation_email(summary: OrderSummaryDTO) -> tuple[str, str]:
    subject = f"Pedido Confirmado - {summary.order_number} - {settings.STORE_NAME}"
    body = (
        f"Olá {summary.buyer_name},\n\n"
        "Seu pedido foi recebido com sucesso. Agradecemos sua compra!\n\n"
        f"Número: {summary.order_number}\n"
        f"Data: {summary.created_at:%d/%m/%Y %H:%M}\n"
        f"Status: {summary.status}\n"
        f"Forma de Pagamento: {payment_label(summary.payment_method)}\n\n"
        f"{_item_lines(summary)}\n\n"
        f"Subtotal: {format_brl(summary.subtotal)}\n"
        f"Frete: {format_brl(summary.shipping_cost)}\n"
        f"Desconto: {format_brl(summary.discount)}\n"
        f"Total: {format_brl(summary.total)}\n\n"
        f"Acompanhe seu pedido: {tracking_link(summary.id)}\n\n"
        f"{_signature()}"
    )
    return subject, body


def payment_confirmation_email(summary: OrderSummaryDTO) -> tuple[str, str]:
    subject = f"Pagamento Confirmado - {summary.order_number} - {settings.STORE_NAME}"
    body = (
        f"Olá {summary.buyer_name},\n\n"
        f"O pagamento do pedido {summary.order_number} foi confirmado.\n"
        f"Valor: {format_brl(summary.total)}\n"
        f"Forma de Pagamento: {payment_label(summary.payment_method)}\n\n"
        "Já estamos preparando seu pedido.\n"
        f"Acompanhe seu pedido: {tracking_link(summary.id)}\n\n"
        f"{_signature()}"
    )
    return subject, body


def shipping_confirmation_email(summary: OrderSummaryDTO, tracking_code: str) -> tuple[str, str]:
    subject = f"Pedido Enviado - {summary.order_number} - {settings.STORE_NAME}"
    tracking = f"Código de rastreio: {tracking_code}\n" if tracking_code else ""
    body = (
        f"Olá {summary.buyer_name},\n\n"
        f"Seu pedido {summary.order_number} foi enviado!\n"
        f"{tracking}"
        f"Acompanhe seu pedido: {tracking_link(summary.id)}\n\n"
        f"{_signature()}"
    )
    return subject, body


# ---------------------------------------------------------------------------
# WhatsApp
# ---------------------------------------------------------------------------


def store_order_message(summary: OrderSummaryDTO) -> str:
    pickup = summary.shipping_type == PICKUP_TYPE
    address = summary.shipping_address
    delivery = "Forma: Retirada" if pickup else (
        "Forma: Entrega\n"
        f"Endereço: {address.get('street', '')}, {address.get('number', '')}"
    )
    item_count = len(summary.items)
    return (
        f"*{settings.STORE_NAME} - Novo Pedido*\n\n"
        f"*Pedido #{summary.order_number}*\n\n"
        f"*DETALHES DO PEDIDO*\n{_item_lines(summary)}\n\n"
        "*DADOS DO CLIENTE*\n"
        f"Nome: {summary.buyer_name}\n"
        f"Telefone: {summary.buyer_phone or 'Não informado'}\n\n"
        f"*DETALHES DA ENTREGA*\n{delivery}\n\n"
        "*VALORES E PAGAMENTO*\n"
        f"{item_count} {'item' if item_count == 1 else 'itens'}\n"
        f"Forma de pagamento: {payment_label(summary.payment_method)}\n"
        f"Total: *{format_brl(summary.total)}*\n\n"
        f"*LINK DE ACOMPANHAMENTO*\n{tracking_link(summary.id)}\n\n"
        f"{_signature()}"
    )


def customer_order_message(summary: OrderSummaryDTO) -> str:
    return (
        f"*{settings.STORE_NAME}*\n\n"
        f"Olá {summary.buyer_name}! Recebemos seu pedido #{summary.order_number}.\n\n"
        f"Você pode acompanhar seu pedido aqui:\n{tracking_link(summary.id)}\n\n"
        "Obrigada por comprar conosco!\n\n"
        f"{_signature()}"
    )
