from __future__ import annotations

import pytest
from pydantic import ValidationError

from modules.orders.constants import PaymentStatus
from modules.payments.constants import to_payment_status, webhook_status
from modules.payments.dtos import BillingInfoDTO, CardDTO, ChargeDTO

pytestmark = pytest.mark.unit


class TestStatusVocabulary:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("CONFIRMED", PaymentStatus.CONFIRMED),
            ("RECEIVED_IN_CASH", PaymentStatus.RECEIVED),
            ("DUNNING_RECEIVED", PaymentStatus.RECEIVED),
            ("DELETED", PaymentStatus.CANCELLED),
            ("AWAITING_RISK_ANALYSIS", PaymentStatus.PENDING),
            (None, PaymentStatus.PENDING),
        ],
    )
    def test_to_payment_status(self, raw, expected):
        assert to_payment_status(raw) == expected

    @pytest.mark.parametrize(
        "event,raw_status,expected",
        [
            ("PAYMENT_CONFIRMED", None, PaymentStatus.CONFIRMED),
            ("PAYMENT_RECEIVED_IN_CASH", None, PaymentStatus.RECEIVED),
            ("PAYMENT_OVERDUE", None, PaymentStatus.OVERDUE),
            ("PAYMENT_REFUNDED", None, PaymentStatus.REFUNDED),
            ("PAYMENT_UPDATED", "CONFIRMED", PaymentStatus.CONFIRMED),
            ("PAYMENT_UPDATED", None, None),
            ("PAYMENT_BANK_SLIP_VIEWED", None, None),
        ],
    )
    def test_webhook_status(self, event, raw_status, expected):
        assert webhook_status(event, raw_status) == expected


class TestBillingInfo:
    def test_formatted_cpf_is_normalized(self):
        billing = BillingInfoDTO(
            name="Maria", email="maria@example.com", cpf_cnpj="529.982.247-25", postal_code="65075-000"
        )
        assert billing.cpf_cnpj == "52998224725"
        assert billing.postal_code == "65075000"

    def test_cnpj_is_accepted(self):
        billing = BillingInfoDTO(
            name="Loja", email="loja@example.com", cpf_cnpj="11.222.333/0001-81"
        )
        assert billing.cpf_cnpj == "11222333000181"

    @pytest.mark.parametrize("document", ["111.111.111-11", "12345678900", "123"])
    def test_invalid_document(self, document):
        with pytest.raises(ValidationError):
            BillingInfoDTO(name="Maria", email="maria@example.com", cpf_cnpj=document)

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            BillingInfoDTO(name="Maria", email="not-an-email", cpf_cnpj="52998224725")


class TestCard:
    def test_number_spaces_are_removed(self):
        card = CardDTO(
            holder_name="MARIA", number="4111 1111 1111 1111", expiry_month="01",
            expiry_year="2030", ccv="123",
        )
        assert card.number == "4111111111111111"
        assert card.installments == 1

    @pytest.mark.parametrize("installments", [0, 13])
    def test_installments_range(self, installments):
        with pytest.raises(ValidationError):
            CardDTO(
                holder_name="MARIA", number="4111111111111111", expiry_month="01",
                expiry_year="2030", ccv="123", installments=installments,
            )


def test_payment_link_prefers_invoice_url():
    charge = ChargeDTO(payment_id="pay_1", invoice_url="https://i", bank_slip_url="https://b")
    assert charge.payment_link == "https://i"
    assert ChargeDTO(payment_id="pay_1", bank_slip_url="https://b").payment_link == "https://b"
