"""Pydantic schema for extraction output."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from pagedistill.extractors.title import clean_title
from pagedistill.extractors.urlnorm import normalize_source


class ExtractionResult(BaseModel):
    """Title and Markdown content extracted from one HTML document."""

    title: str = ""
    content: str = ""

    @field_validator("title")
    @classmethod
    def _single_line_title(cls, value: str) -> str:
        return clean_title(value)

    def metadata(self, source_url: str) -> dict[str, str]:
        """Sidecar metadata stored next to the content chunks."""
        return {
            "title": self.title,
            "source": normalize_source(source_url),
            "format": "html",
        }
