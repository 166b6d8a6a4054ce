"""Kernel ORM models shared by every module."""

from sgpc_kernel.models.user import UserInfo, UserModel

__all__ = ["UserInfo", "UserModel"]
