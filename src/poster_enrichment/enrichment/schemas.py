"""Data shapes shared across the enrichment pipeline.

Two families live here:
- Plain dataclasses for pipeline results (EnrichmentFields, EnrichmentCandidate).
- Pydantic schemas for the LLM's JSON answer. Anything that does not
  validate is treated as a malformed response by the caller.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from poster_enrichment.models.entity import ENTITY_MODELS
from poster_enrichment.models.enums import EntityKind

# Columns that must carry at least one value for a Wikipedia hit to be
# considered sufficient (otherwise the LLM fallback runs).
KEY_STRUCTURED_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    kind: model.key_fields for kind, model in ENTITY_MODELS.items()
}


@dataclass
class EnrichmentFields:
    """Structured facts about an entity, from any source. All optional."""

    nationality: str | None = None
    birth_year: int | None = None
    death_year: int | None = None
    location: str | None = None
    country: str | None = None
    founded_year: int | None = None
    closed_year: int | None = None
    publication_type: str | None = None
    ceased_year: int | None = None
    bio: str | None = None

    def coalesce(self, other: EnrichmentFields | None) -> EnrichmentFields:
        """Merge another result into this one. Self's non-empty values win."""
        if other is None:
            return replace(self)
        merged: dict[str, Any] = {}
        for f in fields(self):
            mine = getattr(self, f.name)
            merged[f.name] = mine if not _is_empty(mine) else getattr(other, f.name)
        return EnrichmentFields(**merged)

    def has_structured_fields(self, kind: EntityKind) -> bool:
        """True if any of the kind's key structured fields is populated."""
        return any(
            not _is_empty(getattr(self, name)) for name in KEY_STRUCTURED_FIELDS.get(kind, ())
        )

    def is_empty(self) -> bool:
        return all(_is_empty(getattr(self, f.name)) for f in fields(self))

    def as_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class EnrichmentCandidate:
    """An accepted encyclopedia match for a name."""

    title: str
    wikipedia_url: str
    score: int
    description: str | None = None
    image_url: str | None = None
    fields: EnrichmentFields = field(default_factory=EnrichmentFields)


@dataclass
class ScoredCandidate:
    """A search hit with its score breakdown (kept for transparency)."""

    title: str
    url: str
    description: str = ""
    score: int = 0
    has_profession_match: bool = False
    reasons: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ── LLM payloads ────────────────────────────────────────────────────────────

_YEAR_RE = re.compile(r"\b(1[5-9]\d{2}|20[0-2]\d)\b")


def _coerce_year(v: Any) -> int | None:
    """Coerce LLM year values to int.

    Models return 1889, "1889", "c. 1889" or "unknown"; anything without a
    plausible four-digit year becomes None.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v if 1500 <= v <= 2029 else None
    if isinstance(v, float):
        return _coerce_year(int(v))
    match = _YEAR_RE.search(str(v))
    return int(match.group(1)) if match else None


def _coerce_text(v: Any) -> str | None:
    if v is None:
        return None
    text = str(v).strip()
    if not text or text.lower() in {"null", "none", "unknown", "n/a"}:
        return None
    return text


Year = Annotated[int | None, BeforeValidator(_coerce_year)]
Text = Annotated[str | None, BeforeValidator(_coerce_text)]


class LLMResearchBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bio: Text = None

    def to_fields(self) -> EnrichmentFields:
        data = self.model_dump(by_alias=False)
        return EnrichmentFields(**data)


class ArtistResearch(LLMResearchBase):
    nationality: Text = None
    birth_year: Year = Field(default=None, alias="birthYear")
    death_year: Year = Field(default=None, alias="deathYear")


class PrinterResearch(LLMResearchBase):
    location: Text = None
    country: Text = None
    founded_year: Year = Field(default=None, alias="foundedYear")
    closed_year: Year = Field(default=None, alias="closedYear")


class PublisherResearch(LLMResearchBase):
    publication_type: Text = Field(default=None, alias="publicationType")
    country: Text = None
    founded_year: Year = Field(default=None, alias="foundedYear")
    ceased_year: Year = Field(default=None, alias="ceasedYear")


LLM_SCHEMAS: dict[EntityKind, type[LLMResearchBase]] = {
    EntityKind.ARTIST: ArtistResearch,
    EntityKind.PRINTER: PrinterResearch,
    EntityKind.PUBLISHER: PublisherResearch,
}
