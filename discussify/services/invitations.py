# discussify/services/invitations.py
import logging
from typing import Optional

from ..models import (
    CommunityModel,
    NotificationModel,
    ROLE_ADMIN,
    ROLE_MODERATOR,
    TYPE_COMMUNITY_INVITE,
)
from ..repositories import UserRepository, NotificationRepository
from ..utils.datetime_utils import now_utc
from ..utils.errors import Conflict, Forbidden, NotFound, ValidationFailed
from .membership import MembershipEngine, normalize_id, UserRef

logger = logging.getLogger(__name__)

INVITER_ROLES = (ROLE_ADMIN, ROLE_MODERATOR)


class InvitationWorkflow:
    """
    Invitations are COMMUNITY_INVITE notifications with a status of
    pending -> accepted | expired | revoked. At most one pending invitation
    exists per (user, community).
    """

    def __init__(
        self,
        engine: MembershipEngine,
        users: UserRepository,
        notifications: NotificationRepository,
    ):
        self.engine = engine
        self.users = users
        self.notifications = notifications

    def _require_inviter(self, community: CommunityModel, inviter_id: str, action: str) -> None:
        if community.role_of(inviter_id) not in INVITER_ROLES:
            raise Forbidden(f"Only admins or moderators can {action} invitations.")

    async def invite(
        self,
        community: CommunityModel,
        inviter: UserRef,
        inviter_username: Optional[str],
        invitee_email: str,
    ) -> NotificationModel:
        inviter_id = normalize_id(inviter)
        self._require_inviter(community, inviter_id, "send")

        invitee = await self.users.get_by_email(invitee_email)
        if invitee is None or not invitee.is_active:
            raise NotFound("User with this email not found on the platform.")

        if community.is_member(invitee.id):
            raise Conflict(f"The user {invitee_email} is already a member of {community.name}.")
        if community.is_banned(invitee.id):
            raise Forbidden(f"The user {invitee_email} is banned from {community.name}.")

        existing = await self.notifications.find_pending_invite(invitee.id, community.id)
        if existing is not None:
            raise Conflict(f"An invitation has already been sent to {invitee_email}.")

        invite = await self.notifications.create(NotificationModel(
            user=invitee.id,
            type=TYPE_COMMUNITY_INVITE,
            title=f"Invitation to Join {community.name}",
            message=f"{inviter_username or 'A member'} has invited you to join the community: {community.name}.",
            data={
                "communityId": community.id,
                "communityName": community.name,
                "communitySlug": community.slug,
                "inviter": {"id": inviter_id, "username": inviter_username},
                "invitedAt": now_utc(),
            },
            status="pending",
        ))
        logger.info("User %s invited %s to community %s", inviter_id, invitee.id, community.id)
        return invite

    async def accept(self, notification_id: str, user: UserRef, username: Optional[str] = None) -> CommunityModel:
        user_id = normalize_id(user)

        invite = await self.notifications.get_by_id(notification_id)
        if invite is None or invite.user != user_id:
            raise NotFound("Invitation not found.")
        if not invite.is_invite:
            raise ValidationFailed("This notification is not a community invitation.")
        if invite.status != "pending":
            raise Conflict(f"This invitation is no longer pending ({invite.status}).")

        community = await self.engine.communities.get_by_id(invite.community_id)
        if community is None or not community.is_active:
            await self.notifications.set_invite_status(invite.id, "expired")
            raise NotFound("Community not found.")

        if community.is_member(user_id):
            await self.notifications.set_invite_status(invite.id, "expired", read=True)
            raise Conflict("You are already a member of this community.")

        # join() finds and consumes this same pending invitation
        return await self.engine.join(community, user_id, username)

    async def revoke(self, community: CommunityModel, actor: UserRef, invitee_id: str) -> None:
        actor_id = normalize_id(actor)
        self._require_inviter(community, actor_id, "revoke")

        invite = await self.notifications.find_pending_invite(invitee_id, community.id)
        if invite is None:
            raise NotFound("No pending invitation for this user.")

        await self.notifications.set_invite_status(invite.id, "revoked")
        logger.info("User %s revoked invitation %s in community %s", actor_id, invite.id, community.id)
