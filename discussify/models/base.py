# discussify/models/base.py
from bson import ObjectId
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

# ✅ Converts ObjectId (or a populated {"_id": ...} reference) to its id string
def _id_str(v):
    if isinstance(v, dict):
        v = v.get("_id", v.get("id"))
    return str(v)


PyObjectId = Annotated[str, BeforeValidator(_id_str)]


class MongoModel(BaseModel):
    """Stored documents use camelCase keys; Python code uses snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_encoders={ObjectId: str},
        extra="ignore",
    )

    def to_public(self, **kwargs) -> dict:
        return self.model_dump(by_alias=True, mode="json", **kwargs)
