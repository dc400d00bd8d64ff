"""Captured record models.

Records are designed to be:
- Immutable once constructed (frozen models, unknown fields rejected).
- A closed set of variants discriminated by `tag`, so new kinds are added here
  rather than as ad hoc field bags.
- Serialized as compact, deterministic JSON that parses back to an equal value.

Build records through `create_record()` or `<Variant>.create()`; both report
bad input as `InvalidFieldError`. Calling a model class directly raises
pydantic's `ValidationError` (also a `ValueError`) instead.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, TypeAlias, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator

from .errors import InvalidFieldError

_M = TypeVar("_M", bound="_Model")


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


def _describe(exc: ValidationError) -> str:
    """Flatten a pydantic error into a single readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "record"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class _Model(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def create(cls: type[_M], **fields: Any) -> _M:
        """Validate `fields` into a new instance, raising InvalidFieldError on bad input."""
        try:
            return cls.model_validate(fields)
        except ValidationError as exc:
            raise InvalidFieldError(f"{cls.__name__}: {_describe(exc)}") from exc


class Vector3(_Model):
    """Three finite float components."""

    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)
    z: float = Field(allow_inf_nan=False)

    @model_validator(mode="before")
    @classmethod
    def coerce_sequence(cls, value: Any) -> Any:
        # Accept (x, y, z) tuples/lists wherever a Vector3 is expected.
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            if len(value) != 3:
                raise ValueError(f"expected exactly 3 components, got {len(value)}")
            return {"x": value[0], "y": value[1], "z": value[2]}
        return value

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


class _EntityRecord(_Model):
    """Shared fields for observations about a named entity."""

    # Name of the observed entity (e.g., a scene object).
    label: str

    # When the observation was made.
    captured_at: datetime = Field(default_factory=utc_now)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("label must be a non-empty string")
        try:
            v.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ValueError("label must be valid UTF-8 text") from exc
        return v

    def serialize(self) -> str:
        """Return the record as a single line of compact JSON."""
        return self.model_dump_json()


class ObjectPosition(_EntityRecord):
    """A named entity's position in world space."""

    tag: Literal["position"] = "position"
    position: Vector3


class ObjectRotation(_EntityRecord):
    """A named entity's orientation as Euler angles in degrees."""

    tag: Literal["rotation"] = "rotation"
    rotation: Vector3


CapturedRecord: TypeAlias = Annotated[Union[ObjectPosition, ObjectRotation], Field(discriminator="tag")]

RECORD_TYPES: dict[str, type[_EntityRecord]] = {
    "position": ObjectPosition,
    "rotation": ObjectRotation,
}

_RECORD_ADAPTER: TypeAdapter[CapturedRecord] = TypeAdapter(CapturedRecord)


def is_record(value: Any) -> bool:
    """Return True when `value` is one of the captured record variants."""
    return isinstance(value, tuple(RECORD_TYPES.values()))


def create_record(tag: str, **fields: Any) -> CapturedRecord:
    """Build a record of the variant named by `tag`.

    Raises:
        InvalidFieldError: unknown tag, or missing/malformed fields.
    """
    record_type = RECORD_TYPES.get(tag)
    if record_type is None:
        known = ", ".join(sorted(RECORD_TYPES))
        raise InvalidFieldError(f"unknown record tag {tag!r} (expected one of: {known})")
    fields.pop("tag", None)
    return record_type.create(**fields)  # type: ignore[return-value]


def parse_record(payload: str | bytes) -> CapturedRecord:
    """Rebuild a record from the output of `serialize()`."""
    try:
        return _RECORD_ADAPTER.validate_json(payload)
    except ValidationError as exc:
        raise InvalidFieldError(f"malformed record: {_describe(exc)}") from exc
