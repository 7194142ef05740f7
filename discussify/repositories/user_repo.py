# discussify/repositories/user_repo.py
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from ._helpers import _oid, _oid_or_none
from .interfaces import UserRepository
from ..models import UserModel
from ..utils.datetime_utils import now_utc

# Never hand password hashes or OTP state to the core
_PUBLIC_PROJECTION = {"password": 0, "otp": 0, "otpExpires": 0, "resetPasswordToken": 0}

# isActive is missing on legacy accounts; treat missing as active
_ACTIVE = {"isActive": {"$ne": False}}


def _to_model(doc: Optional[dict]) -> Optional[UserModel]:
    return UserModel.model_validate(doc) if doc else None


class MongoUserRepository(UserRepository):
    def __init__(self, collection):
        self.collection = collection

    async def get_by_id(self, user_id: str) -> Optional[UserModel]:
        oid = _oid_or_none(user_id)
        if oid is None:
            return None
        return _to_model(await self.collection.find_one({"_id": oid}, _PUBLIC_PROJECTION))

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        pattern = f"^{re.escape(email.strip())}$"
        doc = await self.collection.find_one(
            {"email": {"$regex": pattern, "$options": "i"}}, _PUBLIC_PROJECTION
        )
        return _to_model(doc)

    async def add_joined(self, user_id: str, community_id: str) -> None:
        await self.collection.update_one(
            {"_id": _oid(user_id)},
            {"$addToSet": {"joinedCommunities": _oid(community_id)}},
        )

    async def pull_joined(self, user_id: str, community_id: str) -> None:
        await self.collection.update_one(
            {"_id": _oid(user_id)},
            {"$pull": {"joinedCommunities": _oid(community_id)}},
        )

    async def pull_joined_everywhere(self, community_id: str) -> int:
        cid = _oid(community_id)
        result = await self.collection.update_many(
            {"joinedCommunities": cid},
            {"$pull": {"joinedCommunities": cid}},
        )
        return result.modified_count

    async def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserModel]:
        fields = dict(fields, updatedAt=now_utc())
        if "joinedCommunities" in fields:
            fields["joinedCommunities"] = [_oid(c) for c in fields["joinedCommunities"]]
        doc = await self.collection.find_one_and_update(
            {"_id": _oid(user_id)},
            {"$set": fields},
            projection=_PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return _to_model(doc)

    async def list_active(self, skip: int, limit: int) -> List[UserModel]:
        cursor = (
            self.collection.find(_ACTIVE, _PUBLIC_PROJECTION)
            .sort("createdAt", -1)
            .skip(max(0, skip))
            .limit(limit)
        )
        return [UserModel.model_validate(doc) async for doc in cursor]

    async def count_active(self, since: Optional[datetime] = None) -> int:
        query = dict(_ACTIVE)
        if since is not None:
            query["createdAt"] = {"$gte": since}
        return await self.collection.count_documents(query)
