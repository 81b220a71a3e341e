from typing import Any, ClassVar, Dict, FrozenSet, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PortalModel(BaseModel):
    """Common config: accept wire aliases and Python names, ignore unknown keys"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Fields the backend owns; never sent back in create/update bodies
    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset()

    def to_payload(self, include_read_only: bool = False) -> Dict[str, Any]:
        exclude = None if include_read_only else set(self.READ_ONLY)
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude=exclude)


class Record(PortalModel):
    """A backend record. Ids arrive as `id` or Mongo-style `_id`, int or str."""

    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset({"id"})

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @property
    def key(self) -> str:
        """Identifier used in resource URLs"""
        if self.id is None:
            raise ValueError(f"{type(self).__name__} has no id")
        return self.id
