# discussify/services/notify.py
import logging
from typing import Any, Dict, Optional

from ..models import CommunityModel, NotificationModel, TYPE_COMMUNITY, TYPE_INFO, TYPE_WELCOME
from ..repositories import NotificationRepository
from ..utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)


def _community_ref(community: CommunityModel) -> Dict[str, Any]:
    return {
        "communityId": community.id,
        "communityName": community.name,
        "communitySlug": community.slug,
    }


class NotificationEmitter:
    """
    Best-effort side effects after a membership change.
    Call only after the membership writes succeed; a failure here is logged and
    never reaches the caller.
    """

    def __init__(self, sink: NotificationRepository):
        self.sink = sink

    async def emit(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[NotificationModel]:
        try:
            return await self.sink.create(NotificationModel(
                user=user_id,
                type=type,
                title=title,
                message=message,
                data=data or {},
            ))
        except Exception:
            logger.exception("Notification %r for user %s was not delivered", type, user_id)
            return None

    async def community_created(self, community: CommunityModel) -> None:
        await self.emit(
            community.admin,
            TYPE_COMMUNITY,
            "🎉 Community Created!",
            f'Your community "{community.name}" has been successfully created. Start inviting members!',
            {**_community_ref(community), "createdAt": now_utc()},
        )

    async def joined(self, community: CommunityModel, user_id: str, username: Optional[str]) -> None:
        await self.emit(
            user_id,
            TYPE_WELCOME,
            "✅ Joined Community!",
            f'Welcome to "{community.name}"! You are now a member.',
            {**_community_ref(community), "memberCount": community.member_count, "joinedAt": now_utc()},
        )
        if community.admin and community.admin != str(user_id):
            await self.emit(
                community.admin,
                TYPE_INFO,
                "👥 New Member Joined",
                f'{username or "A user"} has joined your community "{community.name}".',
                {
                    **_community_ref(community),
                    "newMemberId": str(user_id),
                    "newMemberName": username,
                    "memberCount": community.member_count,
                },
            )

    async def left(self, community: CommunityModel, user_id: str, username: Optional[str]) -> None:
        await self.emit(
            user_id,
            TYPE_INFO,
            "👋 Left Community",
            f'You have successfully left "{community.name}".',
            {**_community_ref(community), "leftAt": now_utc()},
        )
        if community.admin and community.admin != str(user_id) and community.is_active:
            await self.emit(
                community.admin,
                TYPE_INFO,
                "👤 Member Left",
                f'{username or "A user"} has left your community "{community.name}".',
                {
                    **_community_ref(community),
                    "leftMemberId": str(user_id),
                    "leftMemberName": username,
                    "memberCount": community.member_count,
                },
            )

    async def admin_transferred(self, community: CommunityModel) -> None:
        await self.emit(
            community.admin,
            TYPE_COMMUNITY,
            "👑 You Are Now Admin",
            f'You are now the admin of "{community.name}".',
            _community_ref(community),
        )
