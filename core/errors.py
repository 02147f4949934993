# core/errors.py

from __future__ import annotations


class AuctionEngineError(ValueError):
    """Base class for validation errors raised before any trial runs."""


class DomainError(AuctionEngineError):
    """A numeric input is outside its domain (e.g. market value <= 0)."""


class InsufficientBiddersError(AuctionEngineError):
    """An auction needs at least two bidders to produce a second price."""


class ConfigurationError(AuctionEngineError):
    """The run configuration is malformed (trial count, ceiling, mechanism...)."""
