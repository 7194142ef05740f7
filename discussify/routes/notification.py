# discussify/routes/notification.py
from fastapi import APIRouter, Depends

from ..controllers.notification_controller import (
    list_notifications,
    unread_count,
    mark_as_read,
    mark_all_as_read,
    delete_notification,
    clear_notifications,
    accept_invitation,
)
from ..models import UserModel
from ..repositories import NotificationRepository
from ..services.invitations import InvitationWorkflow
from ..utils.auth_utils import get_current_user
from ..utils.deps import get_notification_repository, get_invitation_workflow

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", summary="My notifications, newest first")
async def list_route(
    skip: int = 0,
    limit: int = 20,
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository),
):
    return await list_notifications(current_user, skip, limit, notifications)


@router.get("/unread-count", summary="Unread notification count")
async def unread_count_route(
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository),
):
    return await unread_count(current_user, notifications)


@router.put("/mark-all-read", summary="Mark all my notifications as read")
async def mark_all_read_route(
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository),
):
    return await mark_all_as_read(current_user, notifications)


@router.put("/{notification_id}/read", summary="Mark one notification as read")
async def mark_read_route(
    notification_id: str,
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository),
):
    return await mark_as_read(notification_id, current_user, notifications)


@router.post("/{notification_id}/accept", summary="Accept a community invitation")
async def accept_route(
    notification_id: str,
    current_user: UserModel = Depends(get_current_user),
    invitations: InvitationWorkflow = Depends(get_invitation_workflow),
):
    return await accept_invitation(notification_id, current_user, invitations)


@router.delete("/{notification_id}", summary="Delete one notification")
async def delete_route(
    notification_id: str,
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository),
):
    return await delete_notification(notification_id, current_user, notifications)


@router.delete("", summary="Clear all my notifications")
async def clear_route(
    current_user: UserModel = Depends(get_current_user),
    notifications: NotificationRepository = Depends(get_notification_repository),
):
    return await clear_notifications(current_user, notifications)
