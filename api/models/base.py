# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base record models with common configuration and copy-on-write helpers.
"""

from datetime import datetime, timezone
from typing import Any, Dict
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from bson import ObjectId


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


def utc_now() -> datetime:
    """Current timestamp in UTC."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Model exposed on the wire with camelCase field names."""

    model_config = ConfigDict(
        # Accept both snake_case field names and camelCase aliases
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
    )


class BaseRecord(CamelModel):
    """Base record owned by exactly one registry collection."""

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=generate_object_id, description="Unique identifier")

    def evolve(self, **changes: Any) -> "BaseRecord":
        """
        Return a fully re-validated copy of this record with changes applied.

        Registries never mutate stored records in place; every state change
        goes through a new validated instance so invariants checked by model
        validators hold for the record that gets stored.
        """
        data = self.model_dump()
        data.update(changes)
        return self.__class__.model_validate(data)

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the persistence collaborator (camelCase, native datetimes)."""
        return self.model_dump(by_alias=True)

    def to_json(self) -> Dict[str, Any]:
        """Serialize for JSON responses."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
