"""Persistence boundary for the pipeline.

The pipeline only needs a handful of operations, all scoped by universe id:
batch insert returning generated ids, filtered select, single-row job update,
universe status update, and page upsert. ``Repository`` is that contract;
``InMemoryRepository`` implements it for tests, the CLI, and any caller that
wants the extracted graph without a database.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from lore_extractor.pydantic_models.entities import EntityKind

logger = logging.getLogger(__name__)


@runtime_checkable
class Repository(Protocol):
    """Async persistence operations the pipeline relies on."""

    async def get_universe(self, universe_id: str) -> dict[str, Any] | None: ...

    async def set_universe_status(self, universe_id: str, status: str) -> None: ...

    async def insert_entities(
        self, universe_id: str, kind: EntityKind, rows: list[dict[str, Any]],
    ) -> list[str]: ...

    async def list_entities(self, universe_id: str, kind: EntityKind) -> list[dict[str, Any]]: ...

    async def insert_relationships(
        self, universe_id: str, rows: list[dict[str, Any]],
    ) -> list[str]: ...

    async def update_job(self, universe_id: str, **fields: Any) -> None: ...

    async def upsert_pages(self, universe_id: str, pages: list[dict[str, Any]]) -> int: ...


@dataclass
class InMemoryRepository:
    """Dict-backed Repository.

    Every row is stored under its universe id; reads never cross universes.
    Ids are uuid4 strings, matching what a database would generate.
    """

    universes: dict[str, dict[str, Any]] = field(default_factory=dict)
    entities: dict[tuple[str, EntityKind], list[dict[str, Any]]] = field(
        default_factory=lambda: defaultdict(list),
    )
    relationships: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: defaultdict(list),
    )
    jobs: dict[str, dict[str, Any]] = field(default_factory=dict)
    job_history: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: defaultdict(list),
    )
    pages: dict[str, dict[tuple[str, str], dict[str, Any]]] = field(
        default_factory=lambda: defaultdict(dict),
    )

    # Universe

    def add_universe(
        self,
        universe_id: str,
        name: str = "",
        description: str = "",
        status: str = "processing",
    ) -> dict[str, Any]:
        """Register a universe (the caller's job in a real deployment)."""
        universe = {"id": universe_id, "name": name, "description": description, "status": status}
        self.universes[universe_id] = universe
        return universe

    async def get_universe(self, universe_id: str) -> dict[str, Any] | None:
        universe = self.universes.get(universe_id)
        return dict(universe) if universe else None

    async def set_universe_status(self, universe_id: str, status: str) -> None:
        self.universes.setdefault(universe_id, {"id": universe_id}).update(status=status)

    # Entities

    async def insert_entities(
        self, universe_id: str, kind: EntityKind, rows: list[dict[str, Any]],
    ) -> list[str]:
        ids: list[str] = []
        for row in rows:
            entity_id = str(uuid.uuid4())
            self.entities[(universe_id, kind)].append({**row, "id": entity_id, "universe_id": universe_id})
            ids.append(entity_id)
        logger.debug(f"Inserted {len(ids)} {kind.value} rows for {universe_id}")
        return ids

    async def list_entities(self, universe_id: str, kind: EntityKind) -> list[dict[str, Any]]:
        return [dict(row) for row in self.entities.get((universe_id, kind), [])]

    # Relationships

    async def insert_relationships(
        self, universe_id: str, rows: list[dict[str, Any]],
    ) -> list[str]:
        ids: list[str] = []
        for row in rows:
            rel_id = str(uuid.uuid4())
            self.relationships[universe_id].append({**row, "id": rel_id, "universe_id": universe_id})
            ids.append(rel_id)
        return ids

    # Job

    async def update_job(self, universe_id: str, **fields: Any) -> None:
        job = self.jobs.setdefault(universe_id, {"universe_id": universe_id})
        job.update(fields)
        self.job_history[universe_id].append(dict(job))

    # Pages

    async def upsert_pages(self, universe_id: str, pages: list[dict[str, Any]]) -> int:
        store = self.pages[universe_id]
        for page in pages:
            store[(page["entity_type"], page["entity_id"])] = dict(page)
        return len(pages)

    # Export

    def snapshot(self, universe_id: str) -> dict[str, Any]:
        """Everything stored for one universe, JSON-ready."""
        return {
            "universe": self.universes.get(universe_id),
            "entities": {
                kind.plural: [dict(r) for r in self.entities.get((universe_id, kind), [])]
                for kind in EntityKind
            },
            "relationships": [dict(r) for r in self.relationships.get(universe_id, [])],
            "pages": list(self.pages.get(universe_id, {}).values()),
            "job": self.jobs.get(universe_id),
        }
