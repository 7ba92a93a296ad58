"""External service clients (Wikipedia, LLM gateway)."""

from poster_enrichment.clients.llm import LLMClient
from poster_enrichment.clients.wikipedia import WikipediaClient

__all__ = [
    "LLMClient",
    "WikipediaClient",
]
