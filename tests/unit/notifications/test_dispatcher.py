"""Notification delivery: dispatcher, channels, tasks and bus handlers."""

from __future__ import annotations

import json

import httpx
import pytest
from django.core import mail

from modules.notifications import handlers, tasks
from modules.notifications.dispatcher import NotificationDispatcher
from modules.notifications.notifiers import EmailNotifier, NotificationError, WhatsAppNotifier
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import OrderSummaryDTO
from modules.orders.events import OrderCreated

pytestmark = pytest.mark.unit


class RecordingWhatsApp(WhatsAppNotifier):
    def __init__(self, fail=False):
        super().__init__(api_url="")
        self.fail = fail
        self.sent = []

    def send(self, phone, message):
        if self.fail:
            raise NotificationError("WhatsApp API answered HTTP 500.")
        self.sent.append((phone, message))
        return "https://wa.me/"


class FakeTask:
    name = "notifications.notify_order_created"

    def __init__(self, error=None):
        self.error = error
        self.queued = []

    def delay(self, *args):
        if self.error:
            raise self.error
        self.queued.append(args)


class BrokenEmail(EmailNotifier):
    def send(self, to, subject, body):
        raise ConnectionRefusedError("smtp down")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def summary(pending_order):
    return OrderSummaryDTO.from_entity(pending_order)


@pytest.fixture()
def whatsapp():
    return RecordingWhatsApp()


# ===========================================================================
# NotificationDispatcher
# ===========================================================================


class TestDispatcher:
    def test_order_confirmation_email(self, summary, whatsapp):
        dispatcher = NotificationDispatcher(whatsapp=whatsapp)

        assert dispatcher.send_order_confirmation(summary) is True
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ["maria@example.com"]
        assert mail.outbox[0].subject == f"Pedido Confirmado - {summary.order_number} - GessiElegance"

    def test_missing_email_is_skipped(self, summary, whatsapp):
        dispatcher = NotificationDispatcher(whatsapp=whatsapp)
        no_email = summary.model_copy(update={"buyer_email": ""})

        assert dispatcher.send_payment_confirmation(no_email) is False
        assert mail.outbox == []

    def test_email_failure_is_contained(self, summary, whatsapp):
        dispatcher = NotificationDispatcher(email=BrokenEmail(), whatsapp=whatsapp)
        assert dispatcher.send_shipping_confirmation(summary, "BR1") is False

    def test_store_notification_goes_to_the_store_number(self, summary, whatsapp):
        dispatcher = NotificationDispatcher(whatsapp=whatsapp, store_phone="98 98538-1823")

        assert dispatcher.send_order_notification(summary) is True
        phone, message = whatsapp.sent[0]
        assert phone == "98 98538-1823"
        assert f"*Pedido #{summary.order_number}*" in message

    def test_whatsapp_failure_is_contained(self, summary):
        dispatcher = NotificationDispatcher(whatsapp=RecordingWhatsApp(fail=True))
        assert dispatcher.send_customer_notification(summary, "98991234567") is False


# ===========================================================================
# Channels
# ===========================================================================


class TestChannels:
    def test_email_needs_a_recipient(self):
        with pytest.raises(NotificationError):
            EmailNotifier().send("", "Assunto", "Corpo")

    def test_whatsapp_without_api_returns_the_link(self):
        link = WhatsAppNotifier(api_url="").send("98991234567", "Oi")
        assert link == "https://wa.me/5598991234567?text=Oi"

    def test_whatsapp_needs_a_phone(self):
        with pytest.raises(NotificationError):
            WhatsAppNotifier(api_url="").send("", "Oi")

    def test_whatsapp_api_delivery(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"queued": True})

        notifier = WhatsAppNotifier(
            api_url="https://whatsapp.example.com/messages",
            token="wa-token",
            transport=httpx.MockTransport(handler),
        )
        notifier.send("98991234567", "Pedido recebido")

        assert json.loads(seen[0].content) == {"phone": "5598991234567", "message": "Pedido recebido"}
        assert seen[0].headers["Authorization"] == "Bearer wa-token"

    def test_whatsapp_api_error(self):
        notifier = WhatsAppNotifier(
            api_url="https://whatsapp.example.com/messages",
            token="",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        with pytest.raises(NotificationError, match="HTTP 500"):
            notifier.send("98991234567", "Pedido recebido")


# ===========================================================================
# Tasks
# ===========================================================================


class TestTasks:
    def test_order_created_without_phone(self, pending_order):
        pending_order.buyer_phone = ""
        pending_order.save()

        result = tasks.notify_order_created(str(pending_order.id))

        assert result == {"email": True, "store": True, "customer": False}

    def test_payment_confirmed(self, order_service, pending_order):
        order_service.update_payment_status(pending_order.id, PaymentStatus.RECEIVED).unwrap()

        assert tasks.notify_payment_confirmed(str(pending_order.id)) == {"email": True}
        assert mail.outbox[-1].subject.startswith("Pagamento Confirmado")

    def test_shipped_uses_stored_tracking_code(self, order_service, pending_order):
        order_service.update_payment_status(pending_order.id, PaymentStatus.RECEIVED).unwrap()
        order_service.update_order_status(
            pending_order.id, OrderStatus.SHIPPED, tracking_code="BR777"
        ).unwrap()

        assert tasks.notify_order_shipped(str(pending_order.id)) == {"email": True}
        assert "BR777" in mail.outbox[-1].body


# ===========================================================================
# Bus handlers
# ===========================================================================


class TestHandlers:
    def test_handler_enqueues_the_task(self, pending_order, monkeypatch):
        task = FakeTask()
        monkeypatch.setattr(tasks, "notify_order_created", task)

        handlers.order_created_handler.handle(
            OrderCreated(
                aggregate_id=pending_order.id,
                order_number=pending_order.order_number,
                buyer_id=pending_order.buyer_id,
                total=pending_order.total,
                payment_method=pending_order.payment_method,
            )
        )

        assert task.queued == [(str(pending_order.id),)]

    def test_enqueue_failure_does_not_propagate(self, pending_order, monkeypatch):
        monkeypatch.setattr(tasks, "notify_order_created", FakeTask(ConnectionError("broker down")))

        handlers.order_created_handler.handle(
            OrderCreated(
                aggregate_id=pending_order.id,
                order_number=pending_order.order_number,
                buyer_id=pending_order.buyer_id,
                total=pending_order.total,
                payment_method=pending_order.payment_method,
            )
        )
