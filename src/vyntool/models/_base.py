"""Base model and enum for backend payloads.

Every backend record model inherits from :class:`VynBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase backend keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops ``None`` values so the
  field default is used instead.
* Frozen instances: records are replaced, never patched.

String enums inherit from :class:`VynStrEnum` whose ``_missing_`` hook
resolves legacy aliases and unmapped values to a fallback member instead
of raising ``ValueError``.
"""

from __future__ import annotations

import enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class VynStrEnum(enum.StrEnum):
    """Base for backend string enums.

    Subclasses may override :meth:`_fallback` (member used for unknown
    inputs) and :meth:`_aliases` (legacy wire value → member).
    Matching is case-insensitive.
    """

    @classmethod
    def _fallback(cls) -> VynStrEnum | None:
        return None

    @classmethod
    def _aliases(cls) -> dict[str, VynStrEnum]:
        return {}

    @classmethod
    def _lookup(cls, value: object) -> VynStrEnum | None:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        for member in cls:
            if member.value.lower() == text.lower():
                return member
        return cls._aliases().get(text.lower())

    @classmethod
    def _missing_(cls, value: object) -> VynStrEnum | None:
        found = cls._lookup(value)
        if found is not None:
            return found
        return cls._fallback()

    @classmethod
    def is_known(cls, value: Any) -> bool:
        """Whether *value* maps to a member without falling back."""
        return cls._lookup(value) is not None


class VynBaseModel(BaseModel):
    """Base for backend record models.

    Handles:
    * camelCase → snake_case via ``alias_generator=to_camel``
    * ``None`` values → dropped so the field default is used instead
    * Per-class legacy key aliases via ``_KEY_ALIASES``
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {}
    """Legacy wire key → current wire key.

    Applied before validation when the current key is absent.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any], aliases: dict[str, str] | None = None) -> dict[str, Any]:
        working = dict(values)
        if aliases:
            for old_key, new_key in aliases.items():
                if old_key in working and new_key not in working:
                    working[new_key] = working.pop(old_key)
        return {key: value for key, value in working.items() if value is not None}

    @model_validator(mode="before")
    @classmethod
    def _clean_backend_values(cls, values: Any) -> Any:
        """Drop ``None`` values and apply legacy key aliases."""
        if not isinstance(values, dict):
            return values
        aliases: dict[str, str] = getattr(cls, "_KEY_ALIASES", {})
        return VynBaseModel._clean_dict(values, aliases)
