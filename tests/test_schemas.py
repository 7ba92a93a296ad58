"""Tests for shared enrichment types and model completeness."""

from __future__ import annotations

from poster_enrichment.enrichment.schemas import KEY_STRUCTURED_FIELDS, EnrichmentFields
from poster_enrichment.models import Artist, Printer, Publisher
from poster_enrichment.models.enums import EntityKind


class TestEnrichmentFields:
    def test_coalesce_prefers_own_values(self) -> None:
        wiki = EnrichmentFields(country="France", founded_year=None, bio="  ")
        llm = EnrichmentFields(country="Belgium", founded_year=1880, bio="From the model.")

        merged = wiki.coalesce(llm)

        assert merged.country == "France"
        assert merged.founded_year == 1880
        assert merged.bio == "From the model."
        # Inputs untouched
        assert wiki.founded_year is None

    def test_coalesce_with_none(self) -> None:
        fields = EnrichmentFields(location="Paris")
        merged = fields.coalesce(None)
        assert merged == fields
        assert merged is not fields

    def test_has_structured_fields(self) -> None:
        assert EnrichmentFields(birth_year=1900).has_structured_fields(EntityKind.ARTIST)
        assert not EnrichmentFields(death_year=1950).has_structured_fields(EntityKind.ARTIST)
        assert not EnrichmentFields(bio="x").has_structured_fields(EntityKind.PRINTER)
        assert not EnrichmentFields(location="Paris").has_structured_fields(EntityKind.BOOK)

    def test_key_fields_follow_models(self) -> None:
        assert KEY_STRUCTURED_FIELDS[EntityKind.PRINTER] == ("location", "country", "founded_year")
        assert EntityKind.BOOK not in KEY_STRUCTURED_FIELDS


class TestIsIncomplete:
    def test_nothing_populated(self) -> None:
        assert Printer(name="Chaix").is_incomplete()
        assert Artist(name="Colin", bio="  ", nationality="").is_incomplete()

    def test_any_structured_field_counts(self) -> None:
        assert not Printer(name="Chaix", location="Paris").is_incomplete()
        assert not Artist(name="Colin", death_year=1985).is_incomplete()

    def test_bio_and_link_count(self) -> None:
        assert not Artist(name="Studio X", bio="A design studio.").is_incomplete()
        assert not Publisher(
            name="Jugend", wikipedia_url="https://en.wikipedia.org/wiki/Jugend_(magazine)"
        ).is_incomplete()

    def test_image_alone_does_not_count(self) -> None:
        assert Artist(name="Colin", image_url="https://img.test/colin.jpg").is_incomplete()
