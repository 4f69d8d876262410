"""Relationship models: the oracle's named triples and the resolved records."""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from lore_extractor.pydantic_models.entities import EntityKind


def _normalize_type(value: Any) -> Any:
    """FRIEND / Located At / located-at -> friend / located_at / located_at."""
    if not isinstance(value, str):
        return value
    return "_".join(value.strip().lower().replace("-", " ").split())


def _clamp_strength(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        strength = float(value)
    except (TypeError, ValueError):
        return None
    # Some models answer on a 0-100 scale
    if strength > 1.0:
        strength = strength / 100.0
    return max(0.0, min(1.0, strength))


class RelationshipTriple(BaseModel):
    """One relationship as named by the oracle, before endpoint resolution."""

    model_config = ConfigDict(extra="ignore")

    from_entity_name: str
    to_entity_name: str
    relationship_type: str
    from_entity_type: str | None = None
    to_entity_type: str | None = None
    description: str | None = None
    strength: float | None = None

    @field_validator("relationship_type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> Any:
        return _normalize_type(value)

    @field_validator("strength", mode="before")
    @classmethod
    def _strength(cls, value: Any) -> float | None:
        return _clamp_strength(value)


class RelationshipEnvelope(BaseModel):
    """Top-level shape of the relationship prompt's answer."""

    model_config = ConfigDict(extra="ignore")

    relationships: list[dict[str, Any]] = []


class Relationship(BaseModel):
    """A relationship whose endpoints resolved to persisted entities."""

    id: str | None = None
    from_kind: EntityKind
    from_id: str
    to_kind: EntityKind
    to_id: str
    relationship_type: str
    description: str | None = None
    strength: float | None = None

    @field_validator("relationship_type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> Any:
        return _normalize_type(value)

    @field_validator("strength", mode="before")
    @classmethod
    def _strength(cls, value: Any) -> float | None:
        return _clamp_strength(value)

    def to_row(self) -> dict[str, Any]:
        row = self.model_dump(exclude={"id"})
        row["from_kind"] = self.from_kind.value
        row["to_kind"] = self.to_kind.value
        return row
