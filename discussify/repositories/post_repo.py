"""Post queries the community lifecycle depends on (post CRUD lives elsewhere)."""
from typing import Optional

from ._helpers import _oid
from .interfaces import PostRepository
from ..utils.datetime_utils import now_utc


class MongoPostRepository(PostRepository):
    def __init__(self, collection):
        self.collection = collection

    async def count_active(self, community_id: Optional[str] = None) -> int:
        query: dict = {"isDeleted": {"$ne": True}}
        if community_id is not None:
            query["community"] = _oid(community_id)
        return await self.collection.count_documents(query)

    async def soft_delete_by_author(self, user_id: str) -> int:
        result = await self.collection.update_many(
            {"author": _oid(user_id), "isDeleted": {"$ne": True}},
            {"$set": {"isDeleted": True, "deletedAt": now_utc()}},
        )
        return result.modified_count
