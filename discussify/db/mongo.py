# discussify/db/mongo.py
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from ..config import MONGO_URL, MONGO_DB

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(MONGO_URL)
db = client[MONGO_DB]

# Collections
users_collection = db["users"]
communities_collection = db["communities"]
notifications_collection = db["notifications"]   # also carries COMMUNITY_INVITE records
posts_collection = db["posts"]


# Call this once at startup to ensure indexes exist.
async def init_db_indexes() -> None:
    # Users: unique email
    await users_collection.create_index("email", unique=True)
    await users_collection.create_index("joinedCommunities")
    await users_collection.create_index([("isActive", 1), ("createdAt", -1)])

    # Communities: slug/name unique only among active communities so a
    # soft-deleted community frees its name for reuse.
    await communities_collection.create_index(
        "slug",
        unique=True,
        partialFilterExpression={"isActive": True},
        name="active_slug_unique",
    )
    await communities_collection.create_index(
        "name",
        unique=True,
        partialFilterExpression={"isActive": True},
        collation={"locale": "en", "strength": 2},
        name="active_name_unique_ci",
    )
    await communities_collection.create_index("members.user")
    await communities_collection.create_index(
        [("visibility", ASCENDING), ("isActive", ASCENDING), ("memberCount", DESCENDING)],
        name="visibility_active_members_desc",
    )
    await communities_collection.create_index([("isActive", 1), ("deletedAt", 1)])

    # Notifications: inbox listing and pending-invite lookups
    await notifications_collection.create_index(
        [("user", 1), ("createdAt", -1)],
        name="user_createdAt_desc",
    )
    await notifications_collection.create_index(
        [("user", 1), ("type", 1), ("data.communityId", 1), ("status", 1)],
        name="user_type_community_status",
    )

    # Posts: active-post counts per community
    await posts_collection.create_index([("community", 1), ("isDeleted", 1)])
    await posts_collection.create_index("author")

    logger.info("MongoDB indexes ensured on database %s", MONGO_DB)
