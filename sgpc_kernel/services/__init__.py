"""Kernel write services (flush-only; callers own the transaction)."""

from sgpc_kernel.services.base import BaseService

__all__ = ["BaseService"]
