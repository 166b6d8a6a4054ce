"""Read-only selectors."""

from sgpc_kernel.selectors.base import BaseSelector
from sgpc_kernel.selectors.user_selector import UserDirectory

__all__ = ["BaseSelector", "UserDirectory"]
