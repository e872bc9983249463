"""
The acting member on whose behalf entities are projected.

A Visitor is built once per request (or CLI invocation) and passed into the
transform context explicitly, so projection code never reads identity from
global state.
"""

import logging
from dataclasses import dataclass, field

from .models import User, UserIgnored

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Visitor:
    """
    Read-only identity of the caller.

    Attributes:
        user_id: Member id, 0 for guests
        username: Member name, empty for guests
        ignored_user_ids: Members this visitor ignores
        permissions: Granted permission names
    """

    user_id: int = 0
    username: str = ''
    ignored_user_ids: frozenset[int] = field(default_factory=frozenset)
    permissions: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def guest(cls) -> 'Visitor':
        return cls()

    @classmethod
    def for_user(cls, user: User, permissions=()) -> 'Visitor':
        """
        Build a visitor for a member, loading their ignore list.

        Args:
            user: The member
            permissions: Permission names granted to the member

        Returns:
            Visitor with the ignore list resolved (one query)
        """
        ignored = frozenset(
            UserIgnored.objects.filter(user=user).values_list('ignored_user_id', flat=True)
        )
        logger.debug("Visitor %s ignores %d member(s)", user.user_id, len(ignored))
        return cls(
            user_id=user.user_id,
            username=user.username,
            ignored_user_ids=ignored,
            permissions=frozenset(permissions),
        )

    @property
    def is_guest(self) -> bool:
        return not self.user_id

    def is_ignoring(self, user_id: int) -> bool:
        """Check whether content from `user_id` is hidden for this visitor."""
        if not self.user_id or not user_id:
            return False

        return user_id in self.ignored_user_ids

    def has_permission(self, name: str) -> bool:
        return name in self.permissions
