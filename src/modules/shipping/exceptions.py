"""Shipping exceptions."""

from __future__ import annotations

from modules.core.results import DomainError


class ShippingProviderError(DomainError):
    """A carrier quote provider failed or answered with garbage."""
