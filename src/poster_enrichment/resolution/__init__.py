"""Resolution of free-text names into knowledge-base rows.

- countries: canonical country names (CountryNormalizer)
- store: find-or-create with re-validation (ReconciliationStore)
"""

from poster_enrichment.resolution.countries import CountryNormalizer, derive_country_code
from poster_enrichment.resolution.store import (
    ReconciliationStore,
    ResolvedEntity,
    is_confirmed,
    is_placeholder_name,
)

__all__ = [
    "CountryNormalizer",
    "ReconciliationStore",
    "ResolvedEntity",
    "derive_country_code",
    "is_confirmed",
    "is_placeholder_name",
]
