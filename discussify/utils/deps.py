# discussify/utils/deps.py
"""
FastAPI dependency providers. Routes ask for repositories and services here so
tests can replace any of them through app.dependency_overrides.
"""
from fastapi import Depends

from ..db.mongo import (
    communities_collection,
    notifications_collection,
    posts_collection,
    users_collection,
)
from ..repositories import (
    CommunityRepository,
    UserRepository,
    NotificationRepository,
    PostRepository,
    MongoCommunityRepository,
    MongoUserRepository,
    MongoNotificationRepository,
    MongoPostRepository,
)
from ..services.invitations import InvitationWorkflow
from ..services.membership import MembershipEngine


def get_community_repository() -> CommunityRepository:
    return MongoCommunityRepository(communities_collection)


def get_user_repository() -> UserRepository:
    return MongoUserRepository(users_collection)


def get_notification_repository() -> NotificationRepository:
    return MongoNotificationRepository(notifications_collection)


def get_post_repository() -> PostRepository:
    return MongoPostRepository(posts_collection)


def get_membership_engine(
    communities: CommunityRepository = Depends(get_community_repository),
    users: UserRepository = Depends(get_user_repository),
    notifications: NotificationRepository = Depends(get_notification_repository),
) -> MembershipEngine:
    return MembershipEngine(communities, users, notifications)


def get_invitation_workflow(
    engine: MembershipEngine = Depends(get_membership_engine),
    users: UserRepository = Depends(get_user_repository),
    notifications: NotificationRepository = Depends(get_notification_repository),
) -> InvitationWorkflow:
    return InvitationWorkflow(engine, users, notifications)
