"""pagedistill.query - the extraction entry points.

Basic usage::

    from pagedistill.query import extract

    result = extract(html, "https://example.com/blog/some-post")
    print(result.title)
    print(result.content)

Saved files::

    from pagedistill.query import extract_file

    result = extract_file("saved/page.html")
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from pagedistill.config import DEFAULT_CONFIG, ExtractionConfig
from pagedistill.errors import ResourceGuardTripped
from pagedistill.extractors.dom import STRUCTURAL_NOISE, build, normalize_space
from pagedistill.extractors.markdown import escape_text, serialize
from pagedistill.extractors.noise import prune_low_value, strip_structural
from pagedistill.extractors.scoring import select_main_content
from pagedistill.extractors.title import clean_title, resolve_title
from pagedistill.extractors.urlnorm import title_from_source
from pagedistill.items import ExtractionResult

logger = logging.getLogger(__name__)


def _plain_text_fallback(html: str, source_url: str) -> ExtractionResult:
    """Last-resort result: escaped body text with noise elements removed."""
    title = clean_title(title_from_source(source_url))
    try:
        soup = BeautifulSoup(html, "lxml")
        for el in soup.find_all([kind.value for kind in STRUCTURAL_NOISE]):
            el.decompose()
        for el in soup.find_all(["head", "title"]):
            el.decompose()
        text = normalize_space(soup.get_text(separator=" "))
    except Exception as exc:
        logger.warning("Plain-text fallback failed for %s: %s", source_url or "<input>", exc)
        return ExtractionResult(title=title)
    return ExtractionResult(title=title, content=escape_text(text))


def extract(
    html: str,
    source_url: str = "",
    config: ExtractionConfig | None = None,
    *,
    strict: bool = False,
) -> ExtractionResult:
    """Extract the main content of *html* as Markdown, plus a title.

    *source_url* (a URL or file path) is used to resolve relative links and
    as the last title fallback; it is never fetched.

    Never raises for ``str`` input unless *strict* is set, in which case a
    tripped resource guard raises
    :class:`~pagedistill.errors.ResourceGuardTripped`.
    """
    if not isinstance(html, str) or not html.strip():
        return ExtractionResult()
    cfg = config or DEFAULT_CONFIG
    # Lone surrogates cannot be encoded for libxml2; swap them for "?".
    html = html.encode("utf-8", "replace").decode("utf-8")

    try:
        doc = build(html, cfg, strict=strict)
        if doc is None:
            return ExtractionResult()
        strip_structural(doc)
        content = select_main_content(doc, cfg)
        prune_low_value(doc, content, cfg)
        title = resolve_title(doc, content, source_url, cfg)
        base_url = urljoin(source_url, doc.base_href) if doc.base_href else source_url
        markdown = serialize(doc, content, base_url)
    except ResourceGuardTripped:
        raise
    except Exception as exc:
        logger.warning(
            "Extraction failed for %s, using plain-text fallback: %s",
            source_url or "<input>",
            exc,
        )
        return _plain_text_fallback(html, source_url)

    logger.debug(
        "Extracted %d chars of Markdown from %s (title=%r)",
        len(markdown),
        source_url or "<input>",
        title,
    )
    return ExtractionResult(title=title, content=markdown)


def extract_file(
    path: str | Path,
    source_url: str | None = None,
    config: ExtractionConfig | None = None,
    *,
    strict: bool = False,
) -> ExtractionResult:
    """Read a saved HTML file and extract it.

    The file path doubles as the source when *source_url* is not given.
    Undecodable bytes are replaced rather than rejected.  Raises ``OSError``
    if the file cannot be read.
    """
    path = Path(path)
    html = path.read_bytes().decode("utf-8", errors="replace")
    return extract(html, source_url or str(path), config, strict=strict)
