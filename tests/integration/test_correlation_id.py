"""Request IDs: echoed on responses, bound into logs, scoped to one request."""

import logging
import uuid

import pytest

from modules.core.middleware import correlation_id_var

pytestmark = pytest.mark.integration


class TestRequestId:
    def test_caller_id_is_echoed_on_api_responses(self, api_client_with_correlation):
        client, cid = api_client_with_correlation

        response = client.get("/api/v1/cart/")

        assert response["X-Request-ID"] == cid

    def test_error_responses_carry_the_id_too(self, api_client_with_correlation):
        client, cid = api_client_with_correlation

        response = client.get("/api/v1/me")

        assert response.status_code == 401
        assert response["X-Request-ID"] == cid

    def test_fresh_id_per_request(self, client):
        first = client.get("/health")["X-Request-ID"]
        second = client.get("/health")["X-Request-ID"]

        assert first != second
        assert str(uuid.UUID(first)) == first

    def test_id_does_not_leak_past_the_request(self, client):
        client.get("/health", HTTP_X_REQUEST_ID="checkout-777")
        assert correlation_id_var.get() == ""

    def test_request_log_lines_carry_the_id(self, client, caplog):
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID="pedido-log-456")

        messages = [record.getMessage() for record in caplog.records]
        assert any("pedido-log-456" in message for message in messages), messages
