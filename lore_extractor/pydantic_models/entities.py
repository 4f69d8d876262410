"""Entity records extracted from a narrative.

One model per kind. Every field except ``name`` is optional and defaults to
None or an empty list, so a sparse oracle item still maps to a record. The
oracle is loose with types (numbers for dates, a single string where a list
was asked for), so the validators coerce rather than reject.
"""

from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, field_validator


class EntityKind(str, Enum):
    """The four kinds of entity the pipeline extracts."""

    CHARACTER = "character"
    LOCATION = "location"
    EVENT = "event"
    OBJECT = "object"

    @property
    def plural(self) -> str:
        """Collection name, also the key of the oracle's JSON envelope."""
        return f"{self.value}s"


def _as_str_list(value: Any) -> list[str]:
    """Coerce None / str / list into a de-duplicated list of non-blank strings."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        value = [value]

    seen: set[str] = set()
    items: list[str] = []
    for item in value:
        if item is None:
            continue
        text = str(item).strip()
        if text and text not in seen:
            seen.add(text)
            items.append(text)
    return items


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v is not None)
    text = str(value).strip()
    return text or None


class Entity(BaseModel):
    """Fields shared by every kind."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    kind: ClassVar[EntityKind]
    LIST_FIELDS: ClassVar[tuple[str, ...]] = ()
    """List-valued fields, unioned on merge."""
    SCALAR_FIELDS: ClassVar[tuple[str, ...]] = ()
    """Optional scalar fields, first-non-empty on merge."""

    id: str | None = None
    name: str
    aliases: list[str] = []
    description: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("aliases", mode="before")
    @classmethod
    def _clean_aliases(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Any) -> str | None:
        return _as_optional_str(value)

    def to_row(self) -> dict[str, Any]:
        """Row for the repository (the id is assigned there)."""
        return self.model_dump(exclude={"id"})

    def prompt_view(self) -> dict[str, Any]:
        """Compact dict for embedding in a prompt (no ids, no empty fields)."""
        return {k: v for k, v in self.to_row().items() if v not in (None, [], "")}


class Character(Entity):
    kind: ClassVar[EntityKind] = EntityKind.CHARACTER
    LIST_FIELDS: ClassVar[tuple[str, ...]] = ("abilities",)
    SCALAR_FIELDS: ClassVar[tuple[str, ...]] = ("role", "personality", "occupation")

    role: str | None = None
    personality: str | None = None
    occupation: str | None = None
    abilities: list[str] = []

    @field_validator("abilities", mode="before")
    @classmethod
    def _clean_lists(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @field_validator("role", "personality", "occupation", mode="before")
    @classmethod
    def _clean_scalars(cls, value: Any) -> str | None:
        return _as_optional_str(value)


class Location(Entity):
    kind: ClassVar[EntityKind] = EntityKind.LOCATION
    SCALAR_FIELDS: ClassVar[tuple[str, ...]] = ("type", "country", "significance")

    type: str | None = None
    country: str | None = None
    significance: str | None = None

    @field_validator("type", "country", "significance", mode="before")
    @classmethod
    def _clean_scalars(cls, value: Any) -> str | None:
        return _as_optional_str(value)


class Event(Entity):
    kind: ClassVar[EntityKind] = EntityKind.EVENT
    LIST_FIELDS: ClassVar[tuple[str, ...]] = ("involved_characters",)
    SCALAR_FIELDS: ClassVar[tuple[str, ...]] = ("date", "significance")

    date: str | None = None
    significance: str | None = None
    involved_characters: list[str] = []

    @field_validator("involved_characters", mode="before")
    @classmethod
    def _clean_lists(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @field_validator("date", "significance", mode="before")
    @classmethod
    def _clean_scalars(cls, value: Any) -> str | None:
        return _as_optional_str(value)


class LoreObject(Entity):
    """An artifact, weapon, relic or other significant item."""

    kind: ClassVar[EntityKind] = EntityKind.OBJECT
    LIST_FIELDS: ClassVar[tuple[str, ...]] = ("powers",)
    SCALAR_FIELDS: ClassVar[tuple[str, ...]] = ("type", "owner")

    type: str | None = None
    owner: str | None = None
    powers: list[str] = []

    @field_validator("powers", mode="before")
    @classmethod
    def _clean_lists(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @field_validator("type", "owner", mode="before")
    @classmethod
    def _clean_scalars(cls, value: Any) -> str | None:
        return _as_optional_str(value)


ENTITY_MODELS: dict[EntityKind, type[Entity]] = {
    EntityKind.CHARACTER: Character,
    EntityKind.LOCATION: Location,
    EntityKind.EVENT: Event,
    EntityKind.OBJECT: LoreObject,
}
"""Model class for each kind, in extraction order."""
