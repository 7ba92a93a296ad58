"""Enrichment from external knowledge sources.

Submodules:
- keywords: profession/organization/negative keyword tables
- scoring: candidate scoring and the accept/reject gate
- search: Wikipedia search -> scored candidate -> structured fields
- infobox: offline wikitext/extract field extraction
- llm_research: LLM fallback when Wikipedia yields nothing usable
"""

from poster_enrichment.enrichment.infobox import extract_fields, parse_infobox
from poster_enrichment.enrichment.llm_research import LLMResearcher
from poster_enrichment.enrichment.schemas import EnrichmentCandidate, EnrichmentFields
from poster_enrichment.enrichment.scoring import CandidateScorer, ScoringWeights
from poster_enrichment.enrichment.search import EntitySearcher

__all__ = [
    "CandidateScorer",
    "EnrichmentCandidate",
    "EnrichmentFields",
    "EntitySearcher",
    "LLMResearcher",
    "ScoringWeights",
    "extract_fields",
    "parse_infobox",
]
