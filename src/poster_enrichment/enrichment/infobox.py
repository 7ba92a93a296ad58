"""Structured-field extraction from Wikipedia wikitext and extracts.

Pure text processing, no network access:
1. Locate the first ``{{Infobox ...}}`` block (brace-balanced, so nested
   templates do not end it early).
2. Split it into ``key -> value`` pairs on top-level pipes and clean the
   wiki markup out of each value.
3. For each target field of the entity kind, walk an ordered list of
   plausible infobox keys; the first non-empty value wins.
4. Fall back to regex patterns over the plain-text extract when the infobox
   is silent (founding years, artist life dates, printer locations,
   publication types).
"""

from __future__ import annotations

import re

from poster_enrichment.enrichment.schemas import EnrichmentFields
from poster_enrichment.models.enums import EntityKind

YEAR_RE = re.compile(r"\b(1[5-9]\d{2}|20[0-2]\d)\b")

# Target field -> infobox keys, in priority order
FIELD_KEYS: dict[EntityKind, dict[str, tuple[str, ...]]] = {
    EntityKind.ARTIST: {
        "nationality": ("nationality", "citizenship", "birth_place"),
        "birth_year": ("birth_date", "born", "birth_year"),
        "death_year": ("death_date", "died", "death_year"),
    },
    EntityKind.PRINTER: {
        "location": ("location", "headquarters", "location_city", "city", "hq_location", "place"),
        "country": ("country", "location_country", "hq_country", "nation"),
        "founded_year": ("founded", "foundation", "established", "formed", "opened"),
        "closed_year": ("defunct", "closed", "dissolved", "fate"),
    },
    EntityKind.PUBLISHER: {
        "publication_type": ("type", "format", "category"),
        "country": ("country", "location_country", "hq_country", "based"),
        "founded_year": ("founded", "first_issue", "firstdate", "publication_date", "established"),
        "ceased_year": ("final_issue", "finaldate", "ceased_publication", "defunct", "last_issue"),
    },
}

YEAR_FIELDS = frozenset({
    "birth_year",
    "death_year",
    "founded_year",
    "closed_year",
    "ceased_year",
})

_DATE_TEMPLATE_RE = re.compile(
    r"\{\{\s*(?:birth|death|start|end|film)?[ _]?date(?:[ _]and[ _]age)?\s*\|([^{}]*)\}\}",
    re.IGNORECASE,
)
_REF_RE = re.compile(r"<ref[^>/]*/>|<ref[^>]*>.*?</ref>", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_LINK_RE = re.compile(r"\[\[(?:[^|\]]*\|)?([^\]]+)\]\]")
_EXTERNAL_LINK_RE = re.compile(r"\[https?://\S+\s+([^\]]+)\]")
_TEMPLATE_RE = re.compile(r"\{\{[^{}]*\}\}")
_TAG_RE = re.compile(r"<[^>]+>")
_QUOTES_RE = re.compile(r"'{2,}")

_FOUNDED_RE = re.compile(
    r"\b(?:founded|established|opened)\b[^.]{0,40}?\b(1[5-9]\d{2}|20[0-2]\d)\b",
    re.IGNORECASE,
)
_LIFESPAN_RE = re.compile(r"\(([^()]*?)\s*[-–—]\s*([^()]*?)\)")
_PLACE = r"([A-Z][\w'\-]*(?:\s+[A-Z][\w'\-]*)*)"
_BASED_IN_RE = re.compile(
    rf"\b(?:based in|located in|headquartered in)\s+{_PLACE}(?:,\s*{_PLACE})?"
)
# Adjective in "an Italian printing house" -> the country it names
NATIONALITY_COUNTRIES: dict[str, str] = {
    "Italian": "Italy",
    "French": "France",
    "German": "Germany",
    "American": "United States",
    "British": "United Kingdom",
    "Spanish": "Spain",
    "Dutch": "Netherlands",
    "Belgian": "Belgium",
    "Swiss": "Switzerland",
    "Austrian": "Austria",
    "Japanese": "Japan",
    "Chinese": "China",
    "Polish": "Poland",
    "Czech": "Czech Republic",
    "Hungarian": "Hungary",
    "Russian": "Russia",
    "Swedish": "Sweden",
    "Danish": "Denmark",
    "Norwegian": "Norway",
}
_NATIONALITIES = "|".join(NATIONALITY_COUNTRIES)
_NATIONAL_PRINTER_RE = re.compile(
    rf"\b({_NATIONALITIES})\s+(?:printing|lithograph|poster|printer)"
)
_PUBLICATION_TYPES: tuple[tuple[str, str], ...] = (
    ("magazine", "Magazine"),
    ("newspaper", "Newspaper"),
    ("journal", "Journal"),
)


def extract_year(text: str | None) -> int | None:
    """Return the first plausible four-digit year (1500-2029) in ``text``."""
    if not text:
        return None
    match = YEAR_RE.search(text)
    return int(match.group(1)) if match else None


def clean_wiki_markup(text: str) -> str:
    """Strip links, templates, references and HTML from a wikitext value."""
    text = _COMMENT_RE.sub("", text)
    text = _REF_RE.sub("", text)
    # Keep the arguments of date templates so years survive template removal
    text = _DATE_TEMPLATE_RE.sub(lambda m: "-".join(_positional_args(m.group(1))), text)
    text = _LINK_RE.sub(r"\1", text)
    text = _EXTERNAL_LINK_RE.sub(r"\1", text)
    previous = None
    while previous != text:
        previous = text
        text = _TEMPLATE_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    text = _QUOTES_RE.sub("", text)
    text = text.replace("&nbsp;", " ")
    return re.sub(r"\s+", " ", text).strip()


def _positional_args(args: str) -> list[str]:
    return [a.strip() for a in args.split("|") if a.strip() and "=" not in a]


def find_infobox(wikitext: str) -> str | None:
    """Return the body of the first Infobox template, braces excluded."""
    match = re.search(r"\{\{\s*Infobox", wikitext, re.IGNORECASE)
    if match is None:
        return None

    start = match.start()
    depth = 0
    i = start
    while i < len(wikitext) - 1:
        pair = wikitext[i : i + 2]
        if pair == "{{":
            depth += 1
            i += 2
            continue
        if pair == "}}":
            depth -= 1
            i += 2
            if depth == 0:
                return wikitext[start + 2 : i - 2]
            continue
        i += 1
    # Unterminated template: take everything after the opener
    return wikitext[start + 2 :]


def _split_top_level(body: str) -> list[str]:
    """Split on pipes that are not nested inside ``{{ }}`` or ``[[ ]]``."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    i = 0
    while i < len(body):
        pair = body[i : i + 2]
        if pair in ("{{", "[["):
            depth += 1
            current.append(pair)
            i += 2
            continue
        if pair in ("}}", "]]"):
            depth = max(depth - 1, 0)
            current.append(pair)
            i += 2
            continue
        char = body[i]
        if char == "|" and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


def parse_infobox(wikitext: str) -> dict[str, str]:
    """Parse the first infobox into a flat ``key -> cleaned value`` map.

    Keys are lowercased with whitespace collapsed to underscores. Empty
    values are dropped.
    """
    body = find_infobox(wikitext or "")
    if body is None:
        return {}

    data: dict[str, str] = {}
    # First segment is the template name ("Infobox artist")
    for segment in _split_top_level(body)[1:]:
        if "=" not in segment:
            continue
        key, _, raw_value = segment.partition("=")
        key = re.sub(r"\s+", "_", key.strip().lower())
        if not key:
            continue
        value = clean_wiki_markup(raw_value)
        if value and key not in data:
            data[key] = value
    return data


def first_present(data: dict[str, str], keys: tuple[str, ...]) -> str | None:
    """Return the value of the first key in ``keys`` present in ``data``."""
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def first_year(data: dict[str, str], keys: tuple[str, ...]) -> int | None:
    """Return the first key whose value contains a plausible year."""
    for key in keys:
        year = extract_year(data.get(key))
        if year is not None:
            return year
    return None


def extract_fields(wikitext: str | None, extract_text: str | None, kind: EntityKind) -> EnrichmentFields:
    """Extract the structured fields for ``kind`` from a page.

    Args:
        wikitext: Raw page markup (may be empty if the fetch failed).
        extract_text: Plain-text summary of the page.
        kind: Which entity kind's fields to look for.

    Returns:
        EnrichmentFields with whatever could be found; ``bio`` is left unset.
    """
    infobox = parse_infobox(wikitext or "")
    extract_text = extract_text or ""
    result = EnrichmentFields()

    for target, keys in FIELD_KEYS.get(kind, {}).items():
        if target in YEAR_FIELDS:
            setattr(result, target, first_year(infobox, keys))
        else:
            setattr(result, target, first_present(infobox, keys))

    if kind in (EntityKind.PRINTER, EntityKind.PUBLISHER) and result.founded_year is None:
        match = _FOUNDED_RE.search(extract_text)
        if match:
            result.founded_year = int(match.group(1))

    if kind == EntityKind.ARTIST:
        _apply_lifespan(result, extract_text)
    elif kind == EntityKind.PRINTER:
        _apply_printer_location(result, extract_text)
    elif kind == EntityKind.PUBLISHER and result.publication_type is None:
        result.publication_type = infer_publication_type(extract_text)

    return result


def _apply_lifespan(result: EnrichmentFields, extract_text: str) -> None:
    if result.birth_year is not None and result.death_year is not None:
        return
    for match in _LIFESPAN_RE.finditer(extract_text):
        born = extract_year(match.group(1))
        died = extract_year(match.group(2))
        if born is None or died is None:
            continue
        if result.birth_year is None:
            result.birth_year = born
        if result.death_year is None:
            result.death_year = died
        return


def _apply_printer_location(result: EnrichmentFields, extract_text: str) -> None:
    if result.location or result.country:
        return
    match = _BASED_IN_RE.search(extract_text)
    if match:
        result.location = match.group(1).strip()
        if match.group(2):
            result.country = match.group(2).strip()
    if result.country is None:
        national = _NATIONAL_PRINTER_RE.search(extract_text)
        if national:
            result.country = NATIONALITY_COUNTRIES[national.group(1)]


def infer_publication_type(extract_text: str | None) -> str | None:
    """Guess Magazine/Newspaper/Journal from the extract wording."""
    if not extract_text:
        return None
    for word, label in _PUBLICATION_TYPES:
        if re.search(rf"\b{word}\b", extract_text, re.IGNORECASE):
            return label
    return None
