"""Caching layer for the metadata repository."""

from .memory import DomainCache

__all__ = ["DomainCache"]
