"""Base Pydantic model for quire wire documents.

Every document quire stores is read by browser clients as well, so models
serialize with camelCase keys while exposing snake_case attributes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Type alias for JSON values (recursive type)
type JsonValue = (
    str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]
)


class QuireBaseModel(BaseModel):
    """Base model for stored documents.

    Fields are aliased to camelCase for storage and accepted under either
    spelling on input.

    Examples
    --------
    >>> class Row(QuireBaseModel):
    ...     config_hash: str
    >>> Row(configHash="abc").to_document()
    {'configHash': 'abc'}
    >>> Row(config_hash="abc").config_hash
    'abc'
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Dump the model as a JSON-compatible dict with camelCase keys.

        Returns
        -------
        dict[str, Any]
            Document ready for ``json.dumps``.
        """
        return self.model_dump(mode="json", by_alias=True)

    def to_json_bytes(self) -> bytes:
        """Serialize the model to UTF-8 JSON bytes with camelCase keys.

        Returns
        -------
        bytes
            Encoded JSON document.
        """
        return self.model_dump_json(by_alias=True).encode("utf-8")
