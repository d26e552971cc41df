"""Title resolution.

Priority chain (highest → lowest):
    sole top-level heading in the selected content → <title> → source URL → ""
"""

from __future__ import annotations

import logging

from pagedistill.config import DEFAULT_CONFIG, ExtractionConfig
from pagedistill.extractors.dom import HEADING_LEVELS, Document
from pagedistill.extractors.urlnorm import title_from_source

logger = logging.getLogger(__name__)

_HEADING_KINDS = frozenset(HEADING_LEVELS)


def clean_title(text: str) -> str:
    """Collapse *text* to one line without leading Markdown heading marks."""
    title = " ".join(text.split())
    while title.startswith("#"):
        title = title.lstrip("#").strip()
    return title


def heading_title(
    doc: Document,
    content: int,
    config: ExtractionConfig | None = None,
) -> str:
    """Return the text of the single highest-level heading under *content*.

    Returns "" when there is no heading, when the top level is shared by
    more than one heading, or when the text is too long to be a page title.
    """
    cfg = config or DEFAULT_CONFIG
    headings = doc.find_all(_HEADING_KINDS, content)
    if not headings:
        return ""
    top = min(HEADING_LEVELS[doc[idx].kind] for idx in headings)
    dominant = [idx for idx in headings if HEADING_LEVELS[doc[idx].kind] == top]
    if len(dominant) != 1:
        return ""
    text = clean_title(doc.text_content(dominant[0]))
    if not text or len(text) > cfg.max_title_chars:
        return ""
    return text


def resolve_title(
    doc: Document | None,
    content: int | None,
    source_url: str,
    config: ExtractionConfig | None = None,
) -> str:
    """Return the first non-empty title from the fallback chain.

    Never modifies *doc*; the heading used as title stays in the content.
    """
    if doc is None:
        return ""
    if content is not None:
        title = heading_title(doc, content, config)
        if title:
            logger.debug("Title from heading: %r", title)
            return title
    title = clean_title(doc.title)
    if title:
        logger.debug("Title from <title>: %r", title)
        return title
    title = clean_title(title_from_source(source_url))
    if title:
        logger.debug("Title from source %r: %r", source_url, title)
    return title
