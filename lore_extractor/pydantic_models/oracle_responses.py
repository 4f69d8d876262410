"""Schemas for oracle responses.

Two layers:
- ChatCompletion: the transport shape (choices[].message.content), checked
  before any field is read.
- EntityEnvelope: the contract of an extraction prompt's JSON answer.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class CompletionMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message content is empty")
        return value


class CompletionChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: CompletionMessage


class ChatCompletion(BaseModel):
    """At least one choice whose message has non-empty text content."""

    model_config = ConfigDict(extra="ignore")

    choices: list[CompletionChoice]
    usage: Any = None  # read leniently by CostTracker

    @field_validator("choices")
    @classmethod
    def _at_least_one(cls, value: list[CompletionChoice]) -> list[CompletionChoice]:
        if not value:
            raise ValueError("response has no choices")
        return value

    @property
    def content(self) -> str:
        return self.choices[0].message.content


class EntityEnvelope(BaseModel):
    """``{"<kind plural>": [ {...}, ... ]}``; items are mapped individually."""

    model_config = ConfigDict(extra="ignore")

    items: list[Any]

    @classmethod
    def from_payload(cls, payload: Any, key: str) -> "EntityEnvelope":
        """Accept the keyed envelope or a bare list."""
        if isinstance(payload, list):
            return cls(items=payload)
        if isinstance(payload, dict):
            return cls.model_validate({"items": payload.get(key)})
        return cls.model_validate({"items": None})
