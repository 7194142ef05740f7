# discussify/controllers/notification_controller.py
from bson import ObjectId

from ..config import MAX_LIST_LIMIT
from ..models import UserModel
from ..repositories import NotificationRepository
from ..services.invitations import InvitationWorkflow
from ..utils.errors import NotFound, ValidationFailed
from ..utils.responses import ok


def _ensure_id(notification_id: str) -> str:
    if not ObjectId.is_valid(notification_id):
        raise ValidationFailed("Invalid notification ID format.")
    return notification_id


async def list_notifications(
    current_user: UserModel,
    skip: int,
    limit: int,
    notifications: NotificationRepository,
) -> dict:
    items = await notifications.list_for_user(
        current_user.id, max(0, skip), max(1, min(limit, MAX_LIST_LIMIT))
    )
    unread = await notifications.count_unread(current_user.id)
    return ok(data=[n.to_public() for n in items], count=len(items), unreadCount=unread)


async def unread_count(current_user: UserModel, notifications: NotificationRepository) -> dict:
    return ok(data={"unreadCount": await notifications.count_unread(current_user.id)})


async def mark_as_read(notification_id: str, current_user: UserModel, notifications: NotificationRepository) -> dict:
    if not await notifications.mark_read(_ensure_id(notification_id), current_user.id):
        raise NotFound("Notification not found.")
    return ok("Notification marked as read.")


async def mark_all_as_read(current_user: UserModel, notifications: NotificationRepository) -> dict:
    modified = await notifications.mark_all_read(current_user.id)
    return ok(f"{modified} notifications marked as read.", data={"modified": modified})


async def delete_notification(notification_id: str, current_user: UserModel, notifications: NotificationRepository) -> dict:
    if not await notifications.delete(_ensure_id(notification_id), current_user.id):
        raise NotFound("Notification not found.")
    return ok("Notification deleted.")


async def clear_notifications(current_user: UserModel, notifications: NotificationRepository) -> dict:
    deleted = await notifications.delete_all(current_user.id)
    return ok(f"{deleted} notifications cleared.", data={"deleted": deleted})


async def accept_invitation(notification_id: str, current_user: UserModel, invitations: InvitationWorkflow) -> dict:
    community = await invitations.accept(_ensure_id(notification_id), current_user, current_user.username)
    return ok(
        f"Successfully joined community: {community.name}",
        data={"_id": community.id, "slug": community.slug, "memberCount": community.member_count},
    )
