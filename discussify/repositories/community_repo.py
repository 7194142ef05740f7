# discussify/repositories/community_repo.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from ._helpers import _oid, _oid_or_none
from .interfaces import CommunityRepository
from ..models import CommunityModel, MemberModel
from ..utils.datetime_utils import now_utc

# Listings never carry the ban list; the denser ones also drop member arrays.
_LIST_PROJECTION = {"bannedUsers": 0, "rules": 0}
_LIST_PROJECTION_NO_MEMBERS = {"bannedUsers": 0, "rules": 0, "members": 0}

_ACTIVE_PUBLIC = {"isActive": True, "visibility": "public"}


def _member_to_doc(member: MemberModel) -> dict:
    doc = member.model_dump(by_alias=True)
    doc["user"] = _oid(member.user)
    return doc


def _community_to_doc(community: CommunityModel) -> dict:
    doc = community.model_dump(by_alias=True, exclude={"id"})
    doc["admin"] = _oid(community.admin)
    doc["members"] = [_member_to_doc(m) for m in community.members]
    doc["bannedUsers"] = [_oid(u) for u in community.banned_users]
    return doc


def _to_model(doc: Optional[dict]) -> Optional[CommunityModel]:
    return CommunityModel.model_validate(doc) if doc else None


class MongoCommunityRepository(CommunityRepository):
    def __init__(self, collection):
        self.collection = collection

    async def _find_and_update(self, query: dict, update) -> Optional[CommunityModel]:
        doc = await self.collection.find_one_and_update(
            query, update, return_document=ReturnDocument.AFTER
        )
        return _to_model(doc)

    async def _list(self, query: dict, projection: dict, sort=None, skip: int = 0, limit: int = 0) -> List[CommunityModel]:
        cursor = self.collection.find(query, projection)
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [CommunityModel.model_validate(doc) async for doc in cursor]

    # ---------------------------
    # Lookups
    # ---------------------------
    async def get_by_id(self, community_id: str) -> Optional[CommunityModel]:
        oid = _oid_or_none(community_id)
        if oid is None:
            return None
        return _to_model(await self.collection.find_one({"_id": oid}))

    async def get_by_slug(self, slug: str) -> Optional[CommunityModel]:
        return _to_model(await self.collection.find_one({"slug": slug.lower(), "isActive": True}))

    async def find_by_ids(self, community_ids: List[str]) -> List[CommunityModel]:
        oids = [o for o in (_oid_or_none(c) for c in community_ids) if o is not None]
        if not oids:
            return []
        return await self._list({"_id": {"$in": oids}, "isActive": True}, _LIST_PROJECTION)

    # ---------------------------
    # Writes
    # ---------------------------
    async def create(self, community: CommunityModel) -> CommunityModel:
        doc = _community_to_doc(community)
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return CommunityModel.model_validate(doc)

    async def update_fields(self, community_id: str, fields: Dict[str, Any]) -> Optional[CommunityModel]:
        fields = dict(fields, updatedAt=now_utc())
        return await self._find_and_update({"_id": _oid(community_id)}, {"$set": fields})

    async def push_member(self, community_id: str, member: MemberModel) -> Optional[CommunityModel]:
        uid = _oid(member.user)
        # Conditional append: the not-a-member and not-banned checks and the push are one atomic update
        return await self._find_and_update(
            {"_id": _oid(community_id), "members.user": {"$ne": uid}, "bannedUsers": {"$ne": uid}},
            {
                "$push": {"members": _member_to_doc(member)},
                "$inc": {"memberCount": 1},
                "$set": {"updatedAt": now_utc()},
            },
        )

    async def pull_member(self, community_id: str, user_id: str) -> Optional[CommunityModel]:
        uid = _oid(user_id)
        return await self._find_and_update(
            {"_id": _oid(community_id), "members.user": uid},
            {
                "$pull": {"members": {"user": uid}},
                "$inc": {"memberCount": -1},
                "$set": {"updatedAt": now_utc()},
            },
        )

    async def set_admin(self, community_id: str, user_id: str) -> Optional[CommunityModel]:
        uid = _oid(user_id)
        return await self._find_and_update(
            {"_id": _oid(community_id), "members.user": uid},
            {"$set": {"admin": uid, "members.$.role": "admin", "updatedAt": now_utc()}},
        )

    async def sync_member_count(self, community_id: str) -> Optional[CommunityModel]:
        # Pipeline update so the count is derived from the array server-side
        return await self._find_and_update(
            {"_id": _oid(community_id)},
            [{"$set": {"memberCount": {"$size": {"$ifNull": ["$members", []]}}}}],
        )

    async def soft_delete(self, community_id: str) -> Optional[CommunityModel]:
        now = now_utc()
        return await self._find_and_update(
            {"_id": _oid(community_id), "isActive": True},
            {"$set": {
                "isActive": False,
                "deletedAt": now,
                "updatedAt": now,
                "members": [],
                "memberCount": 0,
            }},
        )

    async def delete_inactive_before(self, cutoff: datetime) -> int:
        result = await self.collection.delete_many({"isActive": False, "deletedAt": {"$lt": cutoff}})
        return result.deleted_count

    # ---------------------------
    # Listings
    # ---------------------------
    async def list_for_member(self, user_id: str, include_hidden: bool = False) -> List[CommunityModel]:
        query: dict = {"members.user": _oid(user_id), "isActive": True}
        if not include_hidden:
            query["visibility"] = {"$ne": "hidden"}
        return await self._list(query, _LIST_PROJECTION)

    async def list_popular(self, limit: int) -> List[CommunityModel]:
        return await self._list(
            dict(_ACTIVE_PUBLIC),
            _LIST_PROJECTION_NO_MEMBERS,
            sort=[("memberCount", -1), ("createdAt", -1)],
            limit=limit,
        )

    async def list_recommended(self, interests: List[str], user_id: str, limit: int) -> List[CommunityModel]:
        query = dict(_ACTIVE_PUBLIC)
        query["categories"] = {"$in": list(interests)}
        query["members.user"] = {"$ne": _oid(user_id)}
        return await self._list(
            query,
            _LIST_PROJECTION_NO_MEMBERS,
            sort=[("memberCount", -1)],
            limit=limit,
        )

    async def list_discoverable(self, user_id: str, limit: int) -> List[CommunityModel]:
        uid = _oid(user_id)
        query = dict(_ACTIVE_PUBLIC)
        query["members.user"] = {"$nin": [uid]}
        query["admin"] = {"$ne": uid}
        return await self._list(query, _LIST_PROJECTION, limit=limit)

    async def list_active(self, skip: int, limit: int) -> List[CommunityModel]:
        return await self._list(
            {"isActive": True},
            _LIST_PROJECTION_NO_MEMBERS,
            sort=[("createdAt", -1)],
            skip=skip,
            limit=limit,
        )

    async def count_active(self) -> int:
        return await self.collection.count_documents({"isActive": True})
