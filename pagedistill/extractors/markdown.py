"""Serialize a document subtree to Markdown.

The selected arena subtree is copied back into a small BeautifulSoup tree
(noise and ``<head>`` content left out) and converted with markdownify:
ATX headings, ``-`` bullets, fenced code blocks and GFM tables.  The
converter subclass below adds what the extractor needs on top:

- fenced ``<pre>`` bodies copied verbatim, fence longer than any backtick
  run inside, language hint from a ``language-*`` / ``lang-*`` class
- links and images resolved against the source URL; ``javascript:`` links
  reduced to their text
- inline code keeps its inner spacing
- layout tables (cells holding lists, tables, code or headings, or a single
  column) rendered as ordinary blocks instead of a pipe table
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, NavigableString, Tag
from markdownify import ATX, BACKSLASH, STRIP_ONE, MarkdownConverter, strip1_pre

from pagedistill.extractors.dom import STRUCTURAL_NOISE, Document, ElementKind, normalize_space
from pagedistill.extractors.urlnorm import resolve_link

_FENCE_OPEN_RE = re.compile(r"(`{3,})[^`]*$")
_BACKTICK_RUN_RE = re.compile(r"`+")

_SKIP_KINDS: frozenset[ElementKind] = frozenset(
    {
        ElementKind.HEAD,
        ElementKind.TITLE,
        ElementKind.META,
        ElementKind.LINK,
        ElementKind.BASE,
        *STRUCTURAL_NOISE,
    },
)
_TABLE_PARTS: tuple[str, ...] = ("table", "caption", "thead", "tbody", "tfoot", "tr", "td", "th")
_LAYOUT_MARKERS: tuple[str, ...] = ("table", "ul", "ol", "pre", "h1", "h2", "h3", "h4", "h5", "h6")


def _detect_lang(el: Tag) -> str:
    """Language hint for a ``<pre>`` from its own or its first ``<code>``'s classes."""
    candidates = [el]
    code = el.find("code")
    if isinstance(code, Tag):
        candidates.append(code)
    for tag in candidates:
        classes = tag.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        for cls in classes:
            for prefix in ("language-", "lang-"):
                if cls.startswith(prefix) and len(cls) > len(prefix):
                    return cls[len(prefix):]
    return ""


def _fence_for(code: str) -> str:
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
    return "`" * max(3, longest + 1)


class PageConverter(MarkdownConverter):
    """markdownify converter configured for extracted page content."""

    class Options(MarkdownConverter.DefaultOptions):
        autolinks = False
        base_url = ""
        bullets = "-"
        code_language_callback = _detect_lang
        escape_asterisks = True
        escape_underscores = True
        escape_misc = True
        heading_style = ATX
        newline_style = BACKSLASH
        strip_pre = STRIP_ONE
        table_infer_header = True
        wrap = True
        wrap_width = None

    def process_text(self, el: NavigableString, parent_tags: set[str] | None = None) -> str:
        parent_tags = parent_tags or set()
        if "_noformat" in parent_tags and "pre" not in parent_tags:
            # Inline code: keep inner spacing, only fold line breaks.
            return str(el).replace("\r\n", " ").replace("\n", " ")
        return super().process_text(el, parent_tags=parent_tags)

    def convert_pre(self, el: Tag, text: str, parent_tags: set[str]) -> str:
        if not text.strip():
            return ""
        code = strip1_pre(text)
        fence = _fence_for(code)
        lang = self.options["code_language_callback"](el) or self.options["code_language"]
        return f"\n\n{fence}{lang}\n{code}\n{fence}\n\n"

    def convert_a(self, el: Tag, text: str, parent_tags: set[str]) -> str:
        href = resolve_link(self.options["base_url"], str(el.get("href") or ""))
        if href:
            el["href"] = href
        elif "href" in el.attrs:
            del el["href"]
        return super().convert_a(el, text, parent_tags)

    def convert_img(self, el: Tag, text: str, parent_tags: set[str]) -> str:
        src = str(el.get("src") or el.get("data-src") or "").strip()
        if not src:
            srcset = str(el.get("srcset") or "").strip()
            src = srcset.split(",")[0].strip().split(" ")[0] if srcset else ""
        src = resolve_link(self.options["base_url"], src)
        if not src:
            return ""
        el["src"] = src
        el["alt"] = normalize_space(str(el.get("alt") or ""))
        return super().convert_img(el, text, parent_tags)


def escape_text(text: str) -> str:
    """Collapse whitespace and backslash-escape Markdown syntax in *text*."""
    return PageConverter().escape(normalize_space(text), set())


# ---------------------------------------------------------------------------
# Arena -> soup
# ---------------------------------------------------------------------------

def _to_soup(doc: Document, root: int) -> BeautifulSoup:
    """Copy the subtree at *root* into a fresh soup, skipping noise."""
    soup = BeautifulSoup("", "lxml")
    stack: list[tuple[int, Tag]] = [(root, soup)]
    while stack:
        idx, parent = stack.pop()
        node = doc[idx]
        if node.is_text:
            parent.append(NavigableString(node.text))
            continue
        if node.kind in _SKIP_KINDS:
            continue
        tag = soup.new_tag(node.tag or "div", attrs=dict(node.attrs))
        parent.append(tag)
        stack.extend((child, tag) for child in reversed(node.children))
    return soup


def _own_parts(table: Tag) -> list[Tag]:
    return [
        el for el in table.find_all(_TABLE_PARTS) if el.find_parent("table") is table
    ]


def _is_layout_table(table: Tag, parts: list[Tag]) -> bool:
    rows = [el for el in parts if el.name == "tr"]
    if not rows:
        return True
    widths = [len(row.find_all(["td", "th"], recursive=False)) for row in rows]
    if max(widths) < 2:
        return True
    cells = (el for el in parts if el.name in ("td", "th"))
    return any(cell.find(_LAYOUT_MARKERS) is not None for cell in cells)


def _prepare_tables(soup: BeautifulSoup) -> None:
    """Turn layout tables into plain blocks and lift captions above data tables."""
    for table in soup.find_all("table"):
        parts = _own_parts(table)
        if _is_layout_table(table, parts):
            for el in [table, *parts]:
                el.name = "div"
            continue
        for caption in [el for el in parts if el.name == "caption"]:
            caption.name = "p"
            table.insert_before(caption.extract())


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

def _tidy(md: str) -> str:
    """Strip trailing spaces and collapse blank-line runs outside code fences."""
    lines: list[str] = []
    fence = ""
    for line in md.split("\n"):
        stripped = line.strip()
        if fence:
            lines.append(line)
            if stripped == fence:
                fence = ""
            continue
        line = line.rstrip()
        if not line and lines and not lines[-1]:
            continue
        m = _FENCE_OPEN_RE.match(stripped)
        if m:
            fence = m.group(1)
        lines.append(line)
    return "\n".join(lines).strip()


def serialize(doc: Document, node: int | None = None, base_url: str = "") -> str:
    """Return Markdown for the subtree rooted at *node* (default: whole document).

    Relative link and image URLs are resolved against *base_url*.
    """
    start = doc.root if node is None else node
    soup = _to_soup(doc, start)
    _prepare_tables(soup)
    md = PageConverter(base_url=base_url).convert_soup(soup)
    return _tidy(md)
