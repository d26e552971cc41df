"""Tests for the ExtractionResult schema."""

from __future__ import annotations

from pagedistill.items import ExtractionResult


class TestExtractionResult:
    def test_defaults_empty(self):
        result = ExtractionResult()
        assert result.title == ""
        assert result.content == ""

    def test_title_cleaned(self):
        result = ExtractionResult(title="  ## Multi\n line   title ")
        assert result.title == "Multi line title"

    def test_content_untouched(self):
        result = ExtractionResult(content="# Heading\n\nBody")
        assert result.content == "# Heading\n\nBody"

    def test_metadata(self):
        result = ExtractionResult(title="Post", content="x")
        meta = result.metadata("HTTPS://Example.com:443/blog/post?utm_source=feed#top")
        assert meta == {
            "title": "Post",
            "source": "https://example.com/blog/post",
            "format": "html",
        }

    def test_metadata_file_source(self):
        meta = ExtractionResult(title="Notes").metadata("saved/notes.html")
        assert meta["source"] == "saved/notes.html"

    def test_json_round_trip(self):
        result = ExtractionResult(title="日本語", content="🎉 `code`")
        assert ExtractionResult.model_validate_json(result.model_dump_json()) == result
