# discussify/repositories/notification_repo.py
from typing import List, Optional

from ._helpers import _oid, _oid_or_none, stringify_ids
from .interfaces import NotificationRepository
from ..models import NotificationModel, TYPE_COMMUNITY_INVITE
from ..utils.datetime_utils import now_utc


def _to_model(doc: Optional[dict]) -> Optional[NotificationModel]:
    return NotificationModel.model_validate(stringify_ids(doc)) if doc else None


def _pending_invite_query(user_id: str, community_id: str) -> dict:
    return {
        "user": _oid(user_id),
        "type": TYPE_COMMUNITY_INVITE,
        "data.communityId": _oid(community_id),
        "status": "pending",
    }


class MongoNotificationRepository(NotificationRepository):
    def __init__(self, collection):
        self.collection = collection

    async def create(self, notification: NotificationModel) -> NotificationModel:
        doc = notification.model_dump(by_alias=True, exclude={"id"})
        doc["user"] = _oid(notification.user)
        data = dict(doc.get("data") or {})
        if data.get("communityId") is not None:
            data["communityId"] = _oid(data["communityId"])
        doc["data"] = data
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_model(doc)

    async def get_by_id(self, notification_id: str) -> Optional[NotificationModel]:
        oid = _oid_or_none(notification_id)
        if oid is None:
            return None
        return _to_model(await self.collection.find_one({"_id": oid}))

    async def find_pending_invite(self, user_id: str, community_id: str) -> Optional[NotificationModel]:
        return _to_model(await self.collection.find_one(_pending_invite_query(user_id, community_id)))

    async def set_invite_status(self, notification_id: str, status: str, read: Optional[bool] = None) -> bool:
        fields = {"status": status, "updatedAt": now_utc()}
        if read is not None:
            fields["read"] = read
        # Only a pending invitation may move; a concurrent consumer loses
        result = await self.collection.update_one(
            {"_id": _oid(notification_id), "type": TYPE_COMMUNITY_INVITE, "status": "pending"},
            {"$set": fields},
        )
        return result.modified_count == 1

    async def expire_pending_invites(self, user_id: str, community_id: str) -> int:
        result = await self.collection.update_many(
            _pending_invite_query(user_id, community_id),
            {"$set": {"status": "expired", "updatedAt": now_utc()}},
        )
        return result.modified_count

    async def list_for_user(self, user_id: str, skip: int, limit: int) -> List[NotificationModel]:
        cursor = (
            self.collection.find({"user": _oid(user_id)})
            .sort("createdAt", -1)
            .skip(max(0, skip))
            .limit(limit)
        )
        return [_to_model(doc) async for doc in cursor]

    async def count_unread(self, user_id: str) -> int:
        return await self.collection.count_documents({"user": _oid(user_id), "read": False})

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        result = await self.collection.update_one(
            {"_id": _oid(notification_id), "user": _oid(user_id)},
            {"$set": {"read": True, "updatedAt": now_utc()}},
        )
        return result.matched_count == 1

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.collection.update_many(
            {"user": _oid(user_id), "read": False},
            {"$set": {"read": True, "updatedAt": now_utc()}},
        )
        return result.modified_count

    async def delete(self, notification_id: str, user_id: str) -> bool:
        result = await self.collection.delete_one({"_id": _oid(notification_id), "user": _oid(user_id)})
        return result.deleted_count == 1

    async def delete_all(self, user_id: str) -> int:
        result = await self.collection.delete_many({"user": _oid(user_id)})
        return result.deleted_count
