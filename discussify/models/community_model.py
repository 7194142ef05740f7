# discussify/models/community_model.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from .base import MongoModel, PyObjectId
from ..utils.datetime_utils import now_utc

MemberRole = Literal["admin", "moderator", "member"]
Visibility = Literal["public", "private", "hidden"]

ROLE_ADMIN = "admin"
ROLE_MODERATOR = "moderator"
ROLE_MEMBER = "member"


class MemberModel(MongoModel):
    user: PyObjectId
    role: MemberRole = ROLE_MEMBER
    joined_at: datetime = Field(default_factory=now_utc)


class CommunityModel(MongoModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    name: str
    slug: str
    description: str = ""
    categories: List[str] = Field(default_factory=list)
    cover_image: Optional[str] = None
    rules: List[str] = Field(default_factory=list)

    visibility: Visibility = "public"
    is_private: bool = False
    is_active: bool = True

    admin: PyObjectId
    members: List[MemberModel] = Field(default_factory=list)
    banned_users: List[PyObjectId] = Field(default_factory=list)
    member_count: int = 0
    post_count: int = 0

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    # ---------------------------
    # Read-only membership predicates
    # ---------------------------
    @property
    def requires_invite(self) -> bool:
        return self.is_private or self.visibility == "private"

    def member_entry(self, user_id: str) -> Optional[MemberModel]:
        user_id = str(user_id)
        for m in self.members:
            if m.user == user_id:
                return m
        return None

    def is_member(self, user_id: str) -> bool:
        return self.member_entry(user_id) is not None

    def is_admin(self, user_id: str) -> bool:
        return self.admin == str(user_id)

    def is_banned(self, user_id: str) -> bool:
        return str(user_id) in self.banned_users

    def role_of(self, user_id: str) -> Optional[str]:
        entry = self.member_entry(user_id)
        return entry.role if entry else None

    def successor(self, excluding: str) -> Optional[MemberModel]:
        """Earliest-listed moderator, else earliest-listed member, other than `excluding`."""
        others = [m for m in self.members if m.user != str(excluding)]
        for m in others:
            if m.role == ROLE_MODERATOR:
                return m
        return others[0] if others else None
