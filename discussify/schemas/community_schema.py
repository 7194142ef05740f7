# discussify/schemas/community_schema.py
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel


class _CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_list(v):
    if v is None:
        return None
    if isinstance(v, str):
        v = [v]
    return [str(c).strip() for c in v if str(c).strip()]


class CommunityCreateRequest(_CamelRequest):
    # Optional here so a missing field produces the friendly 400 from the controller
    name: Optional[str] = None
    description: Optional[str] = None
    categories: Optional[Union[List[str], str]] = None
    is_private: bool = False

    @field_validator("name", "description", mode="before")
    @classmethod
    def _trim(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("categories", mode="before")
    @classmethod
    def _categories(cls, v):
        return _as_list(v)


class CommunityUpdateRequest(CommunityCreateRequest):
    is_private: Optional[bool] = None


class InviteRequest(BaseModel):
    email: EmailStr


class RevokeInviteRequest(_CamelRequest):
    user_id: str


class AdminUserUpdateRequest(_CamelRequest):
    role: Optional[Literal["user", "moderator", "admin"]] = None
    is_active: Optional[bool] = None
    bio: Optional[str] = None
    communities_to_remove: List[str] = []
    communities_to_add: List[str] = []


class AdminCommunityUpdateRequest(_CamelRequest):
    name: Optional[str] = None
    description: Optional[str] = None
    categories: Optional[List[str]] = None
    visibility: Optional[Literal["public", "private", "hidden"]] = None
    is_active: Optional[bool] = None

    @field_validator("categories", mode="before")
    @classmethod
    def _categories(cls, v):
        return _as_list(v)
