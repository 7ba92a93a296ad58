"""Keyword tables used to score encyclopedia candidates.

Positive keywords are matched as substrings ("lithograph" also hits
"lithographer"), except the short ones in WHOLE_WORD_KEYWORDS. A hit that
is part of a longer hit ("designer" in "graphic designer") is not counted
again. Organization and negative keywords are matched on word
boundaries so "inc" does not fire inside "since".
"""

from __future__ import annotations

import re

from poster_enrichment.models.enums import EntityKind

PROFESSION_KEYWORDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.ARTIST: (
        "artist",
        "illustrator",
        "painter",
        "lithographer",
        "poster",
        "graphic designer",
        "designer",
        "cartoonist",
        "caricaturist",
        "engraver",
        "printmaker",
        "affichiste",
    ),
    EntityKind.PRINTER: (
        "lithograph",
        "printing company",
        "printing house",
        "printer",
        "printing",
        "press",
        "imprimerie",
        "typograph",
    ),
    EntityKind.PUBLISHER: (
        "magazine",
        "newspaper",
        "journal",
        "publisher",
        "publishing",
        "periodical",
    ),
}

# Studios and agencies count as a profession match for any kind
ORGANIZATION_KEYWORDS: tuple[str, ...] = (
    "agency",
    "studio",
    "inc",
    "llc",
    "corp",
    "company",
)

# Wrong-profession indicators, shared by every kind. A hit in a candidate
# description costs the negative weight; a hit in a stored bio marks the
# record suspicious.
NEGATIVE_KEYWORDS: tuple[str, ...] = (
    "physicist",
    "astrophysicist",
    "astronomer",
    "chemist",
    "biologist",
    "mathematician",
    "scientist",
    "economist",
    "politician",
    "senator",
    "congressman",
    "member of parliament",
    "footballer",
    "athlete",
    "basketball player",
    "baseball player",
    "cricketer",
    "racing driver",
    "admiral",
    "colonel",
    "lieutenant",
    "army officer",
    "professor of physics",
    "professor of medicine",
    "professor of chemistry",
    "professor of mathematics",
    "professor of law",
    "physician",
    "surgeon",
    "neurologist",
)

# Too short to match inside other words ("impressionist", "express")
WHOLE_WORD_KEYWORDS: frozenset[str] = frozenset({"press"})

DISAMBIGUATION_MARKERS: tuple[str, ...] = (
    "topics referred to by the same term",
    "may refer to",
)


def _word_pattern(words: tuple[str, ...]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


_ORGANIZATION_RE = _word_pattern(ORGANIZATION_KEYWORDS)
_NEGATIVE_RE = _word_pattern(NEGATIVE_KEYWORDS)


def _contains(lowered: str, keyword: str) -> bool:
    if keyword in WHOLE_WORD_KEYWORDS:
        return re.search(rf"\b{re.escape(keyword)}\b", lowered) is not None
    return keyword in lowered


def profession_hits(text: str, kind: EntityKind) -> set[str]:
    """Return the distinct profession keywords for ``kind`` found in ``text``."""
    lowered = text.lower()
    hits = {kw for kw in PROFESSION_KEYWORDS.get(kind, ()) if _contains(lowered, kw)}
    return {kw for kw in hits if not any(kw != other and kw in other for other in hits)}


def has_organization_keyword(text: str) -> bool:
    return bool(_ORGANIZATION_RE.search(text))


def has_negative_keyword(text: str | None) -> bool:
    """True if ``text`` mentions a wrong-profession keyword."""
    if not text:
        return False
    return bool(_NEGATIVE_RE.search(text))


def is_disambiguation(title: str, description: str | None = None) -> bool:
    if "(disambiguation)" in title.lower():
        return True
    if description:
        lowered = description.lower()
        return any(marker in lowered for marker in DISAMBIGUATION_MARKERS)
    return False
