"""Tests for onereply.merge module."""
from onereply.atom_types import Citation, PropertyFact
from onereply.merge import (
    citation_key,
    fact_key,
    merge_citations,
    merge_facts,
    reduce_text,
)
from onereply.policy import FieldPolicy


class TestMergeFacts:
    def test_case_variant_keys_collapse(self) -> None:
        merged = merge_facts([
            [PropertyFact("Parcel", "123", ("Transportation",))],
            [PropertyFact("parcel", "123", ("Building",))],
        ])
        assert merged == [PropertyFact("Parcel", "123", ("Transportation", "Building"))]

    def test_conflicting_values_joined(self) -> None:
        merged = merge_facts([
            [PropertyFact("Zoning", "R-5", ("Land Use",))],
            [PropertyFact("zoning ", "R-7.5", ("Building",))],
        ])
        assert len(merged) == 1
        assert merged[0].value == "R-5 / R-7.5"
        assert merged[0].sources == ("Land Use", "Building")

    def test_duplicate_sources_not_repeated(self) -> None:
        merged = merge_facts([
            [PropertyFact("Lot", "A", ("Building",)), PropertyFact("lot", "B", ("Building",))],
        ])
        assert merged[0].sources == ("Building",)
        assert merged[0].value == "A / B"

    def test_empty_values_skipped(self) -> None:
        merged = merge_facts([[PropertyFact("Lot", ""), PropertyFact("Lot", "12")]])
        assert merged[0].value == "12"

    def test_first_seen_key_order(self) -> None:
        merged = merge_facts([
            [PropertyFact("Parcel", "1"), PropertyFact("Zoning", "R-5")],
            [PropertyFact("Address", "100 Main St"), PropertyFact("parcel", "1")],
        ])
        assert [f.key for f in merged] == ["Parcel", "Zoning", "Address"]

    def test_empty_input(self) -> None:
        assert merge_facts([]) == []
        assert merge_facts([[], []]) == []

    def test_idempotent(self) -> None:
        facts = [[PropertyFact("Parcel", "1", ("Building",))]]
        once = merge_facts(facts)
        assert merge_facts([once]) == once

    def test_commutative_as_sets(self) -> None:
        a = [PropertyFact("Zoning", "R-5", ("Land Use",))]
        b = [PropertyFact("zoning", "R-7.5", ("Building",))]
        ab = merge_facts([a, b])[0]
        ba = merge_facts([b, a])[0]
        assert set(ab.value.split(" / ")) == set(ba.value.split(" / "))
        assert set(ab.sources) == set(ba.sources)


class TestMergeCitations:
    def test_descriptions_joined(self) -> None:
        merged = merge_citations([
            [Citation("LUC", "20.20.720", "desc A", ("Transportation",))],
            [Citation("LUC", "20.20.720", "desc B", ("Building",))],
        ])
        assert merged == [
            Citation("LUC", "20.20.720", "desc A; desc B", ("Transportation", "Building"))
        ]

    def test_distinct_sections_kept_apart(self) -> None:
        merged = merge_citations([[
            Citation("LUC", "20.20.720", "driveways"),
            Citation("LUC", "20.20.010", "zoning districts"),
            Citation("BCC", "20.20.720", "other code"),
        ]])
        assert len(merged) == 3

    def test_code_case_normalized(self) -> None:
        merged = merge_citations([
            [Citation("luc", "20.20.720", "x")],
            [Citation("LUC", "20.20.720", "x")],
        ])
        assert len(merged) == 1
        assert merged[0].code == "LUC"
        assert merged[0].description == "x"

    def test_empty_input(self) -> None:
        assert merge_citations([]) == []


class TestKeys:
    def test_fact_key(self) -> None:
        assert fact_key("  Parcel Number ") == "parcel number"

    def test_citation_key(self) -> None:
        assert citation_key(Citation("bcc ", " 24.02.120", "")) == ("BCC", "24.02.120")


class TestReduceText:
    def test_representative(self) -> None:
        items = ["a b c", "a b c d", "x y z"]
        assert reduce_text(items, FieldPolicy("representative", 0.5)) == ["a b c", "x y z"]

    def test_distinct(self) -> None:
        items = ["a", "b", "a"]
        assert reduce_text(items, FieldPolicy("distinct")) == ["a", "b"]

    def test_keep_all(self) -> None:
        items = ["a", "a", "b"]
        assert reduce_text(items, FieldPolicy("keep_all")) == items

    def test_limit_applied_last(self) -> None:
        items = ["one", "two", "three", "four"]
        assert reduce_text(items, FieldPolicy("representative", 0.7, limit=3)) == [
            "one", "two", "three",
        ]
