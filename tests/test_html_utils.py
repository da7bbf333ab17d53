"""Tests for onereply.html_utils module."""
from onereply.html_utils import (
    block_items,
    list_items,
    strip_html,
    strip_tags,
    strip_zero_width,
)


class TestStripHtml:
    def test_basic_extraction(self) -> None:
        result = strip_html("<p>Widen the <b>driveway</b></p>")
        assert result == "Widen the driveway"

    def test_empty_input(self) -> None:
        assert strip_html("") == ""

    def test_one_line_per_block(self) -> None:
        result = strip_html("<p>First</p><ul><li>Second</li><li>Third</li></ul>")
        assert result == "First\nSecond\nThird"

    def test_single_line(self) -> None:
        result = strip_html("<p>First</p><p>Second</p>", keep_lines=False)
        assert result == "First Second"

    def test_plain_text_passes_through(self) -> None:
        assert strip_html("Pothole on Main St") == "Pothole on Main St"


class TestListItems:
    def test_items_in_order(self) -> None:
        fragment = "<ul><li>One</li><li> Two <strong>bold</strong></li></ul>"
        assert list_items(fragment) == ["One", "Two bold"]

    def test_empty_items_dropped(self) -> None:
        assert list_items("<ul><li>  </li><li>Keep</li></ul>") == ["Keep"]

    def test_no_list(self) -> None:
        assert list_items("<p>Para</p>") == []
        assert list_items("") == []


class TestBlockItems:
    def test_prefers_list_items(self) -> None:
        assert block_items("<p>Intro</p><ul><li>A</li></ul>") == ["A"]

    def test_falls_back_to_paragraphs(self) -> None:
        assert block_items("<p>First</p>\n<p>Second</p>") == ["First", "Second"]

    def test_falls_back_to_text(self) -> None:
        assert block_items("Just   some\ntext") == ["Just some text"]

    def test_entities_decoded(self) -> None:
        assert block_items("<li>ROW &amp; sidewalk</li>") == ["ROW & sidewalk"]

    def test_empty(self) -> None:
        assert block_items("") == []
        assert block_items("   ") == []


class TestStripTags:
    def test_keeps_text_verbatim(self) -> None:
        assert strip_tags("Our <em>understanding</em>") == "Our understanding"


class TestStripZeroWidth:
    def test_removes_zero_width(self) -> None:
        assert strip_zero_width("Par\u200bcel\ufeff") == "Parcel"
