"""Shared models."""

from .token import TokenClaims

__all__ = ["TokenClaims"]
