"""Order domain exceptions.

Raised inside the lifecycle operations and converted into failed
``OperationResult`` values at their boundary.
"""

from __future__ import annotations

from modules.core.results import IllegalTransition, NotFound


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class InvalidOrderStatus(IllegalTransition):
    """The status transition is not allowed from the current status."""


class OrderNotCancellable(IllegalTransition):
    """Shipped or delivered orders cannot be cancelled."""
