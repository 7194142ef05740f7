# discussify/services/membership.py
"""
Membership engine: every mutation of the Community.members <-> User.joinedCommunities
relationship goes through here.

Writes happen in a fixed order: community document, then user document, then
notifications. The two document writes are not covered by a transaction; when
the user write fails the community write is compensated and the error is
re-raised, so the two sides never stay apart.
"""
import logging
from typing import List, Optional, Union

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from ..models import (
    CommunityModel,
    MemberModel,
    UserModel,
    ROLE_ADMIN,
    ROLE_MEMBER,
)
from ..repositories import CommunityRepository, UserRepository, NotificationRepository
from ..utils.errors import (
    Conflict,
    Forbidden,
    NotFound,
    ValidationFailed,
    DUPLICATE_COMMUNITY_MESSAGE,
)
from .notify import NotificationEmitter

logger = logging.getLogger(__name__)

COMMUNITY_NOT_FOUND = "Community not found."
BANNED = "You are banned from joining this community."
ALREADY_MEMBER = "You are already a member of this community."
INVITE_REQUIRED = (
    "This is a private community. You can only join if invited by an admin or moderator."
)
NOT_MEMBER = "You are not a member of this community."
SOLE_ADMIN = (
    "As the sole admin, you must delete the community or transfer admin rights before leaving."
)

UserRef = Union[str, ObjectId, dict, UserModel]


def normalize_id(ref: UserRef) -> str:
    """Raw id, ObjectId, populated document or UserModel -> canonical id string."""
    if isinstance(ref, UserModel):
        return str(ref.id)
    if isinstance(ref, dict):
        return str(ref.get("_id", ref.get("id")))
    return str(ref)


def is_member(community: CommunityModel, user: UserRef) -> bool:
    return community.is_member(normalize_id(user))


def is_admin(community: CommunityModel, user: UserRef) -> bool:
    return community.is_admin(normalize_id(user))


def is_banned(community: CommunityModel, user: UserRef) -> bool:
    return community.is_banned(normalize_id(user))


class MembershipEngine:
    def __init__(
        self,
        communities: CommunityRepository,
        users: UserRepository,
        notifications: NotificationRepository,
    ):
        self.communities = communities
        self.users = users
        self.notifications = notifications
        self.notifier = NotificationEmitter(notifications)

    # ---------------------------
    # Lookup
    # ---------------------------
    async def resolve_community(self, id_or_slug: str) -> CommunityModel:
        """By id first, then by slug; soft-deleted communities count as absent."""
        community = None
        if ObjectId.is_valid(id_or_slug):
            community = await self.communities.get_by_id(id_or_slug)
        if community is None or not community.is_active:
            community = await self.communities.get_by_slug(id_or_slug)
        if community is None or not community.is_active:
            raise NotFound(COMMUNITY_NOT_FOUND)
        return community

    # ---------------------------
    # Creation
    # ---------------------------
    async def create_community(
        self,
        name: str,
        slug: str,
        description: str,
        categories: List[str],
        is_private: bool,
        creator: UserRef,
    ) -> CommunityModel:
        creator_id = normalize_id(creator)
        draft = CommunityModel(
            name=name,
            slug=slug,
            description=description,
            categories=categories,
            is_private=is_private,
            visibility="private" if is_private else "public",
            admin=creator_id,
            members=[MemberModel(user=creator_id, role=ROLE_ADMIN)],
            member_count=1,
        )
        try:
            community = await self.communities.create(draft)
        except DuplicateKeyError:
            raise Conflict(DUPLICATE_COMMUNITY_MESSAGE)

        try:
            await self.users.add_joined(creator_id, community.id)
        except Exception:
            logger.exception("Linking creator %s to new community %s failed; rolling back", creator_id, community.id)
            await self.communities.soft_delete(community.id)
            raise

        logger.info("Community %s (%s) created by %s", community.id, community.slug, creator_id)
        await self.notifier.community_created(community)
        return community

    # ---------------------------
    # Self-service join / leave
    # ---------------------------
    async def join(self, community: CommunityModel, user: UserRef, username: Optional[str] = None) -> CommunityModel:
        user_id = normalize_id(user)

        # Preconditions, first failure wins; nothing is written before these pass
        if community.is_banned(user_id):
            raise Forbidden(BANNED)
        if community.is_member(user_id):
            raise Conflict(ALREADY_MEMBER)
        invite = await self.notifications.find_pending_invite(user_id, community.id)
        if community.visibility == "hidden" and invite is None:
            # Uninvited callers cannot tell a hidden community from a missing one
            raise NotFound(COMMUNITY_NOT_FOUND)
        if community.requires_invite and invite is None:
            raise Forbidden(INVITE_REQUIRED)

        updated = await self.communities.push_member(
            community.id, MemberModel(user=user_id, role=ROLE_MEMBER)
        )
        if updated is None:
            # Lost a race with a concurrent join for the same user
            raise Conflict(ALREADY_MEMBER)

        await self._link_user(updated, user_id)

        # Any pending invitation is used up by the join, private or not
        if invite is not None:
            await self.notifications.set_invite_status(invite.id, "accepted", read=True)

        logger.info("User %s joined community %s (members=%s)", user_id, updated.id, updated.member_count)
        await self.notifier.joined(updated, user_id, username)
        return updated

    async def leave(self, community: CommunityModel, user: UserRef, username: Optional[str] = None) -> CommunityModel:
        user_id = normalize_id(user)

        if not community.is_member(user_id):
            if community.visibility == "hidden":
                raise NotFound(COMMUNITY_NOT_FOUND)
            raise ValidationFailed(NOT_MEMBER)
        was_admin = community.is_admin(user_id)
        if was_admin and community.member_count <= 1:
            raise Forbidden(SOLE_ADMIN)

        entry = community.member_entry(user_id)
        updated = await self.communities.pull_member(community.id, user_id)
        if updated is None:
            raise ValidationFailed(NOT_MEMBER)

        await self._unlink_user(updated, entry)

        if was_admin:
            updated = await self._hand_over(updated, user_id)

        logger.info("User %s left community %s (members=%s)", user_id, updated.id, updated.member_count)
        await self.notifier.left(updated, user_id, username)
        return updated

    # ---------------------------
    # Administrative variants (no invite gate, no sole-admin guard, idempotent)
    # ---------------------------
    async def add_member(self, community: CommunityModel, user: UserRef, role: str = ROLE_MEMBER) -> CommunityModel:
        user_id = normalize_id(user)

        if community.is_member(user_id):
            # Already listed; make sure the user side agrees
            await self.users.add_joined(user_id, community.id)
            return community
        if community.is_banned(user_id):
            logger.warning("Skipping add of banned user %s to community %s", user_id, community.id)
            return community

        updated = await self.communities.push_member(community.id, MemberModel(user=user_id, role=role))
        if updated is None:
            # Already listed, or banned since `community` was read
            current = await self.communities.get_by_id(community.id) or community
            if current.is_member(user_id):
                await self.users.add_joined(user_id, community.id)
            else:
                logger.warning("Skipping add of user %s to community %s", user_id, community.id)
            return current

        await self._link_user(updated, user_id)
        # A direct add supersedes any outstanding invitation
        await self.notifications.expire_pending_invites(user_id, community.id)
        logger.info("User %s added to community %s as %s", user_id, updated.id, role)
        return updated

    async def remove_member(self, community: CommunityModel, user: UserRef) -> CommunityModel:
        user_id = normalize_id(user)

        if not community.is_member(user_id):
            await self.users.pull_joined(user_id, community.id)
            return community

        was_admin = community.is_admin(user_id)
        entry = community.member_entry(user_id)
        updated = await self.communities.pull_member(community.id, user_id)
        if updated is None:
            await self.users.pull_joined(user_id, community.id)
            return await self.communities.get_by_id(community.id) or community

        await self._unlink_user(updated, entry)

        if was_admin:
            updated = await self._hand_over(updated, user_id)

        logger.info("User %s removed from community %s", user_id, updated.id)
        return updated

    async def update_member_count(self, community: CommunityModel) -> CommunityModel:
        return await self.communities.sync_member_count(community.id) or community

    async def dissolve(self, community: CommunityModel) -> CommunityModel:
        """Soft-delete the community and drop it from every member's joined list."""
        updated = await self.communities.soft_delete(community.id)
        if updated is None:
            raise NotFound(COMMUNITY_NOT_FOUND)
        pulled = await self.users.pull_joined_everywhere(community.id)
        logger.info("Community %s dissolved; unlinked from %s users", community.id, pulled)
        return updated

    # ---------------------------
    # Internals
    # ---------------------------
    async def _link_user(self, community: CommunityModel, user_id: str) -> None:
        try:
            await self.users.add_joined(user_id, community.id)
        except Exception:
            logger.exception("Linking user %s to community %s failed; rolling back", user_id, community.id)
            await self.communities.pull_member(community.id, user_id)
            raise

    async def _unlink_user(self, community: CommunityModel, entry: MemberModel) -> None:
        try:
            await self.users.pull_joined(entry.user, community.id)
        except Exception:
            logger.exception("Unlinking user %s from community %s failed; rolling back", entry.user, community.id)
            await self.communities.push_member(community.id, entry)
            raise

    async def _hand_over(self, community: CommunityModel, departing_id: str) -> CommunityModel:
        """The admin has gone: promote a successor, or dissolve an empty community."""
        successor = community.successor(departing_id)
        if successor is None:
            logger.info("Community %s has no members left; dissolving", community.id)
            return await self.dissolve(community)

        updated = await self.communities.set_admin(community.id, successor.user)
        if updated is None:
            return community
        logger.info("Community %s admin passed from %s to %s", community.id, departing_id, successor.user)
        await self.notifier.admin_transferred(updated)
        return updated
