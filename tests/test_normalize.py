"""Tests for onereply.normalize module."""
from onereply.normalize import (
    EMPTY_PLACEHOLDER,
    STAFF_REVIEW_FOOTER,
    coerce_to_sectioned_html,
    to_bulleted_html,
)
from onereply.section_splitter import is_well_formed, split_document


LONG_TEXT = (
    "We received your request about the driveway. "
    "The property parcel is 123450-6789 in the R-5 zoning district. "
    "The relevant code citation is the land use code regulation. "
    "You should use the standard apron detail. "
    "Please submit a right-of-way permit application as the next step."
)


class TestToBulletedHtml:
    def test_empty(self) -> None:
        assert to_bulleted_html("") == ""
        assert to_bulleted_html("\n  \n") == ""

    def test_single_line_is_paragraph(self) -> None:
        assert to_bulleted_html("Pothole on Main St") == "<p>Pothole on Main St</p>"

    def test_existing_bullets_stripped(self) -> None:
        assert to_bulleted_html("- first\n* second") == "<ul><li>first</li>\n<li>second</li></ul>"

    def test_plain_lines_become_items(self) -> None:
        assert to_bulleted_html("first\nsecond") == "<ul><li>first</li>\n<li>second</li></ul>"

    def test_escapes_markup(self) -> None:
        assert to_bulleted_html("width < 5 ft & clear") == "<p>width &lt; 5 ft &amp; clear</p>"


class TestCoerceToSectionedHtml:
    def test_empty(self) -> None:
        assert coerce_to_sectioned_html("   ") == ""

    def test_short_text_under_understanding(self) -> None:
        assert coerce_to_sectioned_html("Pothole on Main St") == (
            "<h3>Our understanding</h3><p>Pothole on Main St</p>"
        )

    def test_long_text_has_all_headings(self) -> None:
        html = coerce_to_sectioned_html(LONG_TEXT)
        for heading in (
            "Our understanding", "Property facts", "Relevant code citations",
            "Guidance", "Follow-up questions", "Next steps",
        ):
            assert f"<h3>{heading}</h3>" in html
        assert html.endswith(STAFF_REVIEW_FOOTER)
        assert is_well_formed(html)

    def test_sentences_routed_by_keyword(self) -> None:
        html = coerce_to_sectioned_html(LONG_TEXT)
        assert "<h3>Guidance</h3><p>You should use the standard apron detail</p>" in html
        assert "<h3>Property facts</h3><p>The property parcel is 123450-6789" in html
        assert f"<h3>Follow-up questions</h3>{EMPTY_PLACEHOLDER}" in html

    def test_result_splits_into_all_topics(self) -> None:
        sections = split_document(coerce_to_sectioned_html(LONG_TEXT), "building")
        assert [s.topic_key for s in sections] == ["situation", "guidance", "nextsteps"]
        assert sections[0].atoms.situation.understanding == (
            "We received your request about the driveway",
        )

    def test_html_input_flattened(self) -> None:
        assert coerce_to_sectioned_html("<p>Pothole</p><p>near the <b>school</b></p>") == (
            "<h3>Our understanding</h3><ul><li>Pothole</li>\n<li>near the school</li></ul>"
        )
