"""
Roadmap Catalog - static curriculum tree.

The catalog is the matching target for cross-referencing. It is loaded once
at startup from YAML, validated against the expected shape, and kept as an
immutable structure indexed by id:

    {id, name, description?, topics: [{id, name, description?,
        subtopics: [{id, name, description?}]}]}

Validation fails fast with CatalogValidationError on:
- missing file or invalid YAML
- missing/empty id or name at any level
- an id used more than once anywhere in the tree
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, ValidationError, field_validator

from learntrack.core.config import CONFIG_DIR
from learntrack.core.exceptions import CatalogValidationError
from learntrack.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOG_PATH = CONFIG_DIR / "roadmap_catalog.yaml"

MISCELLANEOUS_TOPIC_ID: Final[str] = "miscellaneous"
MISCELLANEOUS_TOPIC_NAME: Final[str] = "Miscellaneous"
MISCELLANEOUS_DESCRIPTION: Final[str] = "Entries that don't match any specific topic"


# =============================================================================
# Load-time schema
# =============================================================================


class _NodeSchema(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str | None = None

    @field_validator("id", "name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class _TopicSchema(_NodeSchema):
    subtopics: list[_NodeSchema] = Field(default_factory=list)


class _CatalogSchema(_NodeSchema):
    id: str = Field(default="default", min_length=1)
    topics: list[_TopicSchema] = Field(default_factory=list)


# =============================================================================
# Immutable catalog
# =============================================================================


@dataclass(frozen=True, slots=True)
class CatalogSubtopic:
    id: str
    name: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class CatalogTopic:
    id: str
    name: str
    description: str | None = None
    subtopics: tuple[CatalogSubtopic, ...] = ()


class RoadmapCatalog:
    """Read-only curriculum tree with O(1) id lookup.

    Iterating yields topics in declaration order, which is also the
    matcher's tie-break order.

    Example:
        >>> catalog = RoadmapCatalog.from_yaml(Path("learntrack/config/roadmap_catalog.yaml"))
        >>> catalog.topic("devops").name
        'DevOps'
    """

    __slots__ = ("_id", "_name", "_description", "_topics", "_topic_index",
                 "_subtopic_index", "_parent_index")

    def __init__(
        self,
        catalog_id: str,
        name: str,
        topics: tuple[CatalogTopic, ...],
        description: str | None = None,
    ) -> None:
        self._id = catalog_id
        self._name = name
        self._description = description
        self._topics = topics
        self._topic_index = {t.id: t for t in topics}
        self._subtopic_index = {s.id: s for t in topics for s in t.subtopics}
        self._parent_index = {s.id: t.id for t in topics for s in t.subtopics}

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> RoadmapCatalog:
        """Load and validate a catalog file.

        Args:
            path: YAML file path. Uses the bundled catalog if None.

        Raises:
            CatalogValidationError: If the file is missing or malformed.
        """
        path = path or DEFAULT_CATALOG_PATH
        if not path.exists():
            raise CatalogValidationError(f"Catalog file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CatalogValidationError(f"Invalid YAML in catalog: {e}") from e

        # Some exports wrap a single roadmap in a list
        if isinstance(raw, list):
            if not raw:
                raise CatalogValidationError(f"Catalog file has no roadmaps: {path}")
            raw = raw[0]

        catalog = cls.from_mapping(raw)
        logger.info(
            "catalog_loaded",
            path=str(path),
            catalog_id=catalog.id,
            topics=len(catalog),
            subtopics=len(catalog._subtopic_index),
        )
        return catalog

    @classmethod
    def from_mapping(cls, raw: Any) -> RoadmapCatalog:
        """Validate an already-parsed catalog mapping.

        Raises:
            CatalogValidationError: On schema violations or duplicate ids.
        """
        if not isinstance(raw, dict):
            raise CatalogValidationError("Catalog must be a mapping")

        try:
            schema = _CatalogSchema.model_validate(raw)
        except ValidationError as e:
            raise CatalogValidationError(f"Invalid catalog structure: {e}") from e

        seen: set[str] = set()
        for node in _walk(schema):
            if node.id in seen:
                raise CatalogValidationError(f"Duplicate catalog id: {node.id}")
            seen.add(node.id)

        topics = tuple(
            CatalogTopic(
                id=t.id,
                name=t.name,
                description=t.description,
                subtopics=tuple(
                    CatalogSubtopic(id=s.id, name=s.name, description=s.description)
                    for s in t.subtopics
                ),
            )
            for t in schema.topics
        )
        return cls(
            catalog_id=schema.id,
            name=schema.name,
            description=schema.description,
            topics=topics,
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def topics(self) -> tuple[CatalogTopic, ...]:
        return self._topics

    def topic(self, topic_id: str) -> CatalogTopic | None:
        """Return the topic with the given id, or None."""
        return self._topic_index.get(topic_id)

    def subtopic(self, subtopic_id: str) -> CatalogSubtopic | None:
        """Return the subtopic with the given id, or None."""
        return self._subtopic_index.get(subtopic_id)

    def parent_topic_id(self, subtopic_id: str) -> str | None:
        """Return the id of the topic owning a subtopic, or None."""
        return self._parent_index.get(subtopic_id)

    def has_miscellaneous(self) -> bool:
        return MISCELLANEOUS_TOPIC_ID in self._topic_index

    def __len__(self) -> int:
        return len(self._topics)

    def __iter__(self) -> Iterator[CatalogTopic]:
        return iter(self._topics)


def _walk(schema: _CatalogSchema) -> Iterator[_NodeSchema]:
    # The catalog id itself is not part of the topic tree namespace
    for topic in schema.topics:
        yield topic
        yield from topic.subtopics
