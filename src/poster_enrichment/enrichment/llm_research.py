"""LLM fallback research for names Wikipedia could not resolve.

One kind-specific prompt per call. The model is asked for a bare JSON
object; the first balanced ``{...}`` in the reply is parsed and validated
against the kind's schema. Every failure mode (no credentials, transport
error, empty reply, no JSON, invalid JSON) yields None.
"""

from __future__ import annotations

import json
import logging

from openai import OpenAIError
from pydantic import ValidationError

from poster_enrichment.clients.llm import LLMClient
from poster_enrichment.config import settings
from poster_enrichment.enrichment.schemas import LLM_SCHEMAS, EnrichmentFields
from poster_enrichment.models.enums import EntityKind

logger = logging.getLogger(__name__)

_PRINTER_PROMPT = """\
Research this historical printing company: "{name}"

Provide information about this lithography/printing company. If the name \
includes a location (e.g., "Company, Cleveland, Ohio"), extract that location.

Return ONLY valid JSON with these fields (use null for unknown):
{{
  "location": "city or city, state",
  "country": "country name",
  "foundedYear": year as number or null,
  "closedYear": year as number or null if still operating or unknown,
  "bio": "1-2 sentence description of the company and what they printed"
}}

If you don't have specific information about this company, still try to \
extract location from the name and provide a generic description based on \
the company type."""

_PUBLISHER_PROMPT = """\
Research this publication/publisher: "{name}"

Provide information about this magazine, newspaper, or publishing company.

Return ONLY valid JSON with these fields (use null for unknown):
{{
  "publicationType": "Magazine" or "Newspaper" or "Journal" or "Book Publisher",
  "country": "country name",
  "foundedYear": year as number or null,
  "ceasedYear": year as number or null if still publishing,
  "bio": "1-2 sentence description of the publication"
}}"""

_ARTIST_PROMPT = """\
Research this artist/illustrator: "{name}"

Provide information about this artist, particularly if they were a poster \
artist, illustrator, or commercial artist.

Return ONLY valid JSON with these fields (use null for unknown):
{{
  "nationality": "nationality",
  "birthYear": year as number or null,
  "deathYear": year as number or null if still living or unknown,
  "bio": "1-2 sentence description of the artist and their work"
}}"""

PROMPTS: dict[EntityKind, str] = {
    EntityKind.ARTIST: _ARTIST_PROMPT,
    EntityKind.PRINTER: _PRINTER_PROMPT,
    EntityKind.PUBLISHER: _PUBLISHER_PROMPT,
}


def build_prompt(name: str, kind: EntityKind) -> str:
    return PROMPTS[kind].format(name=name)


def extract_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` substring of ``text``.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def parse_research(text: str, kind: EntityKind) -> EnrichmentFields | None:
    """Parse an LLM reply into structured fields, or None if unusable."""
    raw = extract_json_object(text)
    if raw is None:
        logger.warning("No JSON object in LLM %s research reply", kind.value)
        return None
    try:
        data = json.loads(raw)
        parsed = LLM_SCHEMAS[kind].model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Unparsable LLM %s research reply: %s", kind.value, e)
        return None
    return parsed.to_fields()


class LLMResearcher:
    """Asks a language model for the same fields Wikipedia would give.

    Usage:
        researcher = LLMResearcher.from_settings()
        fields = await researcher.research("Imprimerie Chaix", EntityKind.PRINTER)
    """

    def __init__(self, client: LLMClient | None = None) -> None:
        self._client = client

    @classmethod
    def from_settings(cls) -> LLMResearcher:
        """Build a researcher, disabled when no API key is configured."""
        if not settings.llm_api_key:
            return cls(None)
        return cls(LLMClient())

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def research(self, name: str, kind: EntityKind) -> EnrichmentFields | None:
        """Return LLM-sourced fields for ``name``, or None."""
        if self._client is None:
            logger.info("No LLM API key configured; skipping research for %r", name)
            return None
        if kind not in PROMPTS or not name.strip():
            return None

        try:
            reply = await self._client.complete(build_prompt(name.strip(), kind))
        except OpenAIError as e:
            logger.warning("LLM research failed for %r: %s", name, e)
            return None

        if not reply.strip():
            logger.warning("Empty LLM research reply for %r", name)
            return None

        fields = parse_research(reply, kind)
        if fields is not None:
            logger.info("LLM research for %s %r: %s", kind.value, name, fields.as_dict())
        return fields
