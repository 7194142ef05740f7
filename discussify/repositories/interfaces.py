"""
Repository interfaces for the membership core.

Services depend on these abstractions only; the motor-backed classes in this
package are the production implementations and tests swap in in-memory ones.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Any, List, Optional

from ..models import CommunityModel, MemberModel, UserModel, NotificationModel


class CommunityRepository(ABC):

    @abstractmethod
    async def get_by_id(self, community_id: str) -> Optional[CommunityModel]:
        """Return the community with this id, active or not."""

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[CommunityModel]:
        """Return the active community with this slug."""

    @abstractmethod
    async def find_by_ids(self, community_ids: List[str]) -> List[CommunityModel]:
        """
        Return the active communities among `community_ids`; unknown ids are skipped.
        Listing projection: `bannedUsers` and `rules` are not loaded, so ban checks
        need the full document from get_by_id.
        """

    @abstractmethod
    async def create(self, community: CommunityModel) -> CommunityModel:
        """
        Insert a community and return it with its id.
        Raises pymongo DuplicateKeyError when an active community already uses the name/slug.
        """

    @abstractmethod
    async def update_fields(self, community_id: str, fields: Dict[str, Any]) -> Optional[CommunityModel]:
        """$set the given stored (camelCase) fields; returns the updated community."""

    @abstractmethod
    async def push_member(self, community_id: str, member: MemberModel) -> Optional[CommunityModel]:
        """
        Append `member` and increment memberCount in one atomic update, only if the
        user is neither listed nor banned. Returns the updated community, or None when
        the user was already a member or is banned (or the community is gone).
        """

    @abstractmethod
    async def pull_member(self, community_id: str, user_id: str) -> Optional[CommunityModel]:
        """
        Remove the user's member entry and decrement memberCount atomically, only if
        present. Returns the updated community, or None when the user was not listed.
        """

    @abstractmethod
    async def set_admin(self, community_id: str, user_id: str) -> Optional[CommunityModel]:
        """Make an existing member the community admin (role and `admin` field)."""

    @abstractmethod
    async def sync_member_count(self, community_id: str) -> Optional[CommunityModel]:
        """Recompute memberCount from the members array."""

    @abstractmethod
    async def soft_delete(self, community_id: str) -> Optional[CommunityModel]:
        """Deactivate the community and dissolve its member list."""

    @abstractmethod
    async def delete_inactive_before(self, cutoff: datetime) -> int:
        """Hard-delete communities soft-deleted before `cutoff`."""

    # Listings (active communities only)
    @abstractmethod
    async def list_for_member(self, user_id: str, include_hidden: bool = False) -> List[CommunityModel]:
        ...

    @abstractmethod
    async def list_popular(self, limit: int) -> List[CommunityModel]:
        ...

    @abstractmethod
    async def list_recommended(self, interests: List[str], user_id: str, limit: int) -> List[CommunityModel]:
        ...

    @abstractmethod
    async def list_discoverable(self, user_id: str, limit: int) -> List[CommunityModel]:
        ...

    @abstractmethod
    async def list_active(self, skip: int, limit: int) -> List[CommunityModel]:
        ...

    @abstractmethod
    async def count_active(self) -> int:
        ...


class UserRepository(ABC):

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[UserModel]:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[UserModel]:
        """Case-insensitive lookup by email."""

    @abstractmethod
    async def add_joined(self, user_id: str, community_id: str) -> None:
        """Set-add the community to joinedCommunities (never duplicates)."""

    @abstractmethod
    async def pull_joined(self, user_id: str, community_id: str) -> None:
        ...

    @abstractmethod
    async def pull_joined_everywhere(self, community_id: str) -> int:
        """Remove the community from every user's joinedCommunities."""

    @abstractmethod
    async def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserModel]:
        ...

    @abstractmethod
    async def list_active(self, skip: int, limit: int) -> List[UserModel]:
        ...

    @abstractmethod
    async def count_active(self, since: Optional[datetime] = None) -> int:
        ...


class NotificationRepository(ABC):
    """Notification sink plus the invitation queries that ride on it."""

    @abstractmethod
    async def create(self, notification: NotificationModel) -> NotificationModel:
        ...

    @abstractmethod
    async def get_by_id(self, notification_id: str) -> Optional[NotificationModel]:
        ...

    @abstractmethod
    async def find_pending_invite(self, user_id: str, community_id: str) -> Optional[NotificationModel]:
        ...

    @abstractmethod
    async def set_invite_status(self, notification_id: str, status: str, read: Optional[bool] = None) -> bool:
        """Move a pending invitation to `status`; False when it was no longer pending."""

    @abstractmethod
    async def expire_pending_invites(self, user_id: str, community_id: str) -> int:
        ...

    @abstractmethod
    async def list_for_user(self, user_id: str, skip: int, limit: int) -> List[NotificationModel]:
        ...

    @abstractmethod
    async def count_unread(self, user_id: str) -> int:
        ...

    @abstractmethod
    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        ...

    @abstractmethod
    async def mark_all_read(self, user_id: str) -> int:
        ...

    @abstractmethod
    async def delete(self, notification_id: str, user_id: str) -> bool:
        ...

    @abstractmethod
    async def delete_all(self, user_id: str) -> int:
        ...


class PostRepository(ABC):

    @abstractmethod
    async def count_active(self, community_id: Optional[str] = None) -> int:
        """Count posts that are not soft-deleted, optionally within one community."""

    @abstractmethod
    async def soft_delete_by_author(self, user_id: str) -> int:
        ...
