# discussify/models/notification_model.py
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from .base import MongoModel, PyObjectId
from ..utils.datetime_utils import now_utc

TYPE_COMMUNITY_INVITE = "COMMUNITY_INVITE"
TYPE_COMMUNITY = "community"
TYPE_WELCOME = "welcome"
TYPE_INFO = "info"

# `read` only means "seen"; invitation lifecycle lives in `status`
InviteStatus = Literal["pending", "accepted", "expired", "revoked"]


class NotificationModel(MongoModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    user: PyObjectId
    type: str
    title: str = ""
    message: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    status: Optional[InviteStatus] = None
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None

    @property
    def is_invite(self) -> bool:
        return self.type == TYPE_COMMUNITY_INVITE

    @property
    def is_pending_invite(self) -> bool:
        return self.is_invite and self.status == "pending"

    @property
    def community_id(self) -> Optional[str]:
        cid = self.data.get("communityId")
        return str(cid) if cid is not None else None
