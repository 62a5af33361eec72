"""Unit tests for OperationResult and the returns_result boundary."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import OperationalError

from modules.core.results import (
    DomainError,
    ErrorCode,
    IllegalTransition,
    NotFound,
    OperationResult,
    error_response,
    returns_result,
)
from modules.products.exceptions import InsufficientStock
from modules.products.models import Product

pytestmark = pytest.mark.unit


class Operations:
    @returns_result
    def succeed(self, value):
        return value

    @returns_result
    def missing(self):
        raise NotFound("Order 42 not found.")

    @returns_result
    def write_then_fail(self):
        Product.objects.create(name="Rolled back", price=Decimal("10.00"))
        raise IllegalTransition("Cannot transition from SHIPPED to PENDING.")

    @returns_result
    def database_down(self):
        raise OperationalError("connection refused")


@pytest.fixture()
def ops():
    return Operations()


# ===========================================================================
# returns_result
# ===========================================================================


class TestReturnsResult:
    def test_success_wraps_the_value(self, ops):
        result = ops.succeed(7)
        assert result.success is True
        assert result.value == 7
        assert result.error is None
        assert result.http_status == 200

    def test_domain_error_becomes_failed_result(self, ops):
        result = ops.missing()
        assert result.success is False
        assert result.code == ErrorCode.NOT_FOUND
        assert result.error == "Order 42 not found."
        assert result.http_status == 404

    def test_failure_rolls_back_writes(self, ops):
        result = ops.write_then_fail()
        assert result.code == ErrorCode.ILLEGAL_TRANSITION
        assert not Product.objects.filter(name="Rolled back").exists()

    def test_database_error_becomes_persistence_failure(self, ops):
        result = ops.database_down()
        assert result.success is False
        assert result.code == ErrorCode.PERSISTENCE_FAILURE
        assert result.http_status == 503


# ===========================================================================
# OperationResult
# ===========================================================================


class TestOperationResult:
    def test_unwrap_returns_value(self):
        assert OperationResult.ok("done").unwrap() == "done"

    def test_unwrap_raises_with_the_original_code(self):
        result = OperationResult.fail(InsufficientStock("Only 1 left."))
        with pytest.raises(DomainError) as excinfo:
            result.unwrap()
        assert excinfo.value.code == ErrorCode.INSUFFICIENT_STOCK
        assert str(excinfo.value) == "Only 1 left."

    @pytest.mark.parametrize(
        ("code", "status"),
        [
            (ErrorCode.NOT_FOUND, 404),
            (ErrorCode.ILLEGAL_TRANSITION, 400),
            (ErrorCode.VALIDATION, 400),
            (ErrorCode.INSUFFICIENT_STOCK, 409),
            (ErrorCode.PAYMENT_PROVIDER_FAILURE, 502),
            (ErrorCode.PERSISTENCE_FAILURE, 503),
        ],
    )
    def test_http_status_by_code(self, code, status):
        result = OperationResult.fail(DomainError("nope", code=code))
        assert result.http_status == status

    def test_error_response_body(self):
        response = error_response(OperationResult.fail(NotFound("Order 1 not found.")))
        assert response.status_code == 404
        assert response.data == {"detail": "Order 1 not found.", "code": "NOT_FOUND"}

    def test_default_message_is_the_docstring(self):
        assert NotFound().message == "The referenced record does not exist."
