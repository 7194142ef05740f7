from .base import PyObjectId, MongoModel
from .community_model import (
    CommunityModel,
    MemberModel,
    MemberRole,
    Visibility,
    ROLE_ADMIN,
    ROLE_MODERATOR,
    ROLE_MEMBER,
)
from .user_model import UserModel
from .notification_model import (
    NotificationModel,
    InviteStatus,
    TYPE_COMMUNITY_INVITE,
    TYPE_COMMUNITY,
    TYPE_WELCOME,
    TYPE_INFO,
)
