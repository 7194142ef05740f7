from .interfaces import (
    CommunityRepository,
    UserRepository,
    NotificationRepository,
    PostRepository,
)
from .community_repo import MongoCommunityRepository
from .user_repo import MongoUserRepository
from .notification_repo import MongoNotificationRepository
from .post_repo import MongoPostRepository
