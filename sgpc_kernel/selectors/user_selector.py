"""
Module: sgpc_kernel.selectors.user_selector
Responsibility: User directory lookups used to resolve requesters and
    approvers.
"""

from uuid import UUID

from sgpc_kernel.exceptions import UserNotFoundError
from sgpc_kernel.models.user import UserInfo, UserModel
from sgpc_kernel.selectors.base import BaseSelector


class UserDirectory(BaseSelector):
    """Read-only access to users."""

    def find_by_id(self, user_id: UUID) -> UserInfo:
        """
        Resolve a user by id.

        Raises:
            UserNotFoundError: If no user has this id.
        """
        user = self.session.get(UserModel, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user.to_dto()
