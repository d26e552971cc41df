"""Tests for pagedistill.extractors.dom."""

from __future__ import annotations

import pytest

from pagedistill.config import ExtractionConfig
from pagedistill.errors import ResourceGuardTripped
from pagedistill.extractors.dom import ElementKind, build


def _body_text(html: str) -> str:
    doc = build(html)
    assert doc is not None
    return doc.text_content(doc.body)


# ---------------------------------------------------------------------------
# Empty input
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("html", ["", "   ", "\n\t  \r\n"])
def test_empty_input_returns_none(html):
    assert build(html) is None


# ---------------------------------------------------------------------------
# Tolerant parsing
# ---------------------------------------------------------------------------

class TestTolerantParsing:
    def test_fragment_gets_html_and_body(self):
        doc = build("<p>Just a fragment</p>")
        assert doc is not None
        assert doc[doc.root].kind is ElementKind.HTML
        assert doc.body is not None
        assert "Just a fragment" in doc.text_content(doc.body)

    def test_entities_decoded(self):
        assert "Fish & Chips <3" in _body_text("<p>Fish &amp; Chips &lt;3</p>")

    def test_unclosed_paragraphs_become_siblings(self):
        doc = build("<body><p>One<p>Two</body>")
        assert doc is not None
        paragraphs = doc.find_all(frozenset({ElementKind.P}))
        assert len(paragraphs) == 2
        assert doc[paragraphs[1]].parent == doc.body

    def test_unmatched_closing_tags_ignored(self):
        text = _body_text("<p>Hello</span></div> world</p>")
        assert "Hello" in text
        assert "world" in text

    def test_comments_dropped(self):
        text = _body_text("<p>visible<!-- hidden remark -->text</p>")
        assert "hidden remark" not in text
        assert "visible" in text

    def test_malformed_markup_never_raises(self):
        doc = build("<div><p>Unclosed paragraph<div>Another div</div><<<>>></td></table>")
        assert doc is not None
        assert "Unclosed paragraph" in doc.text_content(doc.root)

    def test_title_decoded_and_collapsed(self):
        doc = build("<html><head><title>\n  A &amp;\n B  </title></head><body><p>x</p></body></html>")
        assert doc is not None
        assert doc.title == "A & B"

    def test_base_href_captured(self):
        doc = build('<html><head><base href="https://cdn.example.com/"></head><body>x</body></html>')
        assert doc is not None
        assert doc.base_href == "https://cdn.example.com/"

    def test_class_attribute_joined(self):
        doc = build('<div class="post  content" id="main">x</div>')
        assert doc is not None
        div = doc.find_first(ElementKind.DIV)
        assert doc[div].attrs["class"] == "post content"
        assert doc[div].attrs["id"] == "main"


# ---------------------------------------------------------------------------
# Arena structure
# ---------------------------------------------------------------------------

class TestArena:
    def test_parent_indices_match_children(self):
        doc = build("<div><ul><li>a</li><li>b <em>c</em></li></ul><p>d</p></div>")
        assert doc is not None
        for idx in doc.iter_subtree(doc.root):
            for child in doc[idx].children:
                assert doc[child].parent == idx

    def test_indices_follow_document_order(self):
        doc = build("<p>first</p><p>second</p><p>third</p>")
        assert doc is not None
        texts = [doc.text_content(i) for i in doc.find_all(frozenset({ElementKind.P}))]
        assert texts == ["first", "second", "third"]

    def test_detach_removes_subtree(self):
        doc = build("<div><p>keep</p><p>drop</p></div>")
        assert doc is not None
        paragraphs = doc.find_all(frozenset({ElementKind.P}))
        doc.detach(paragraphs[1])
        assert doc[paragraphs[1]].parent is None
        assert "drop" not in doc.text_content(doc.root)
        assert "keep" in doc.text_content(doc.root)

    def test_ancestors_walk_to_root(self):
        doc = build("<div><p><em>x</em></p></div>")
        assert doc is not None
        em = doc.find_first(ElementKind.EM)
        kinds = [doc[a].kind for a in doc.ancestors(em)]
        assert kinds == [
            ElementKind.P,
            ElementKind.DIV,
            ElementKind.BODY,
            ElementKind.HTML,
        ]


class TestElementKind:
    def test_known_tag(self):
        assert ElementKind.from_tag("DIV") is ElementKind.DIV

    def test_unknown_tag_is_other(self):
        assert ElementKind.from_tag("custom-widget") is ElementKind.OTHER

    def test_marker_values_not_reachable_from_tags(self):
        assert ElementKind.from_tag("#text") is ElementKind.OTHER


# ---------------------------------------------------------------------------
# Text measurement
# ---------------------------------------------------------------------------

class TestMeasure:
    def test_link_density(self):
        doc = build('<div><a href="/x">abcde</a>fghij</div>')
        assert doc is not None
        div = doc.find_first(ElementKind.DIV)
        stats = doc.measure()[div]
        assert stats.total_len == 10
        assert stats.link_len == 5
        assert stats.link_count == 1
        assert stats.link_density == pytest.approx(0.5)

    def test_direct_text_stops_at_blocks(self):
        doc = build("<div>own text<p>nested paragraph</p></div>")
        assert doc is not None
        div = doc.find_first(ElementKind.DIV)
        stats = doc.measure()[div]
        assert stats.direct_len == len("own text")
        assert stats.total_len == len("own text") + len("nested paragraph")

    def test_punctuation_counts_cjk_commas(self):
        doc = build("<p>一、二，三, four; five</p>")
        assert doc is not None
        p = doc.find_first(ElementKind.P)
        assert doc.measure()[p].punctuation == 4


# ---------------------------------------------------------------------------
# Resource guards
# ---------------------------------------------------------------------------

class TestResourceGuards:
    DEEP = "<div>" * 30 + "deep text" + "</div>" * 30

    def test_depth_cap_flattens_remainder(self):
        doc = build(self.DEEP, ExtractionConfig(max_depth=10))
        assert doc is not None
        assert doc.guards_tripped
        assert "deep text" in doc.text_content(doc.root)
        depth = max(len(list(doc.ancestors(i))) for i in doc.iter_subtree(doc.root))
        assert depth <= 11

    def test_depth_cap_skips_noise_text(self):
        html = "<div>" * 12 + "<script>var x = 1;</script>kept" + "</div>" * 12
        doc = build(html, ExtractionConfig(max_depth=5))
        assert doc is not None
        text = doc.text_content(doc.root)
        assert "kept" in text
        assert "var x" not in text

    def test_input_size_cap_truncates(self):
        html = "<p>" + "word " * 100 + "</p>"
        doc = build(html, ExtractionConfig(max_input_chars=50))
        assert doc is not None
        assert any("max_input_chars" in reason for reason in doc.guards_tripped)
        assert len(doc.text_content(doc.root)) < 50

    def test_strict_mode_raises(self):
        with pytest.raises(ResourceGuardTripped) as excinfo:
            build(self.DEEP, ExtractionConfig(max_depth=10), strict=True)
        assert excinfo.value.limit_name == "max_depth"
        assert excinfo.value.limit == 10
        assert excinfo.value.observed > 10

    def test_within_limits_no_trip(self):
        doc = build("<div><p>fine</p></div>")
        assert doc is not None
        assert doc.guards_tripped == []
