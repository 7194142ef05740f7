# discussify/models/user_model.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import MongoModel, PyObjectId
from ..utils.datetime_utils import now_utc


class UserModel(MongoModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    username: Optional[str] = None
    email: str
    role: str = "user"              # platform role: user | moderator | admin
    is_active: bool = True
    bio: Optional[str] = None
    avatar: Optional[str] = None
    interests: List[str] = Field(default_factory=list)

    # Mutated only as a side effect of membership changes
    joined_communities: List[PyObjectId] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
