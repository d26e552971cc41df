"""Tolerant HTML parsing into an index-addressed node arena.

BeautifulSoup (lxml backend) does the forgiving part: unclosed tags,
stray end tags, missing ``<html>``/``<head>``/``<body>``, entity decoding.
The resulting tree is copied into a :class:`Document` whose nodes refer to
their parent and children by index, so upward walks (score propagation,
link-density checks) never need a second owner.

Closing precedence is whatever libxml2's HTML parser decides.  In practice:
a ``<p>`` closes at the next block start tag, an open ``<li>`` closes at the
next ``<li>``, ``<td>``/``<tr>`` close at the next sibling cell/row, and end
tags with no matching open element are dropped.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from pagedistill.config import DEFAULT_CONFIG, ExtractionConfig
from pagedistill.errors import ResourceGuardTripped

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"[ \t\n\r\f]+")
_PUNCTUATION = frozenset(",，、;；")


class ElementKind(enum.Enum):
    """Every element kind the pipeline treats specially.

    Tags with no member map to ``OTHER`` and behave like ``<span>``.
    """

    TEXT = "#text"
    OTHER = "#other"

    HTML = "html"
    HEAD = "head"
    BODY = "body"
    TITLE = "title"
    META = "meta"
    LINK = "link"
    BASE = "base"

    # Structural noise
    SCRIPT = "script"
    STYLE = "style"
    NOSCRIPT = "noscript"
    TEMPLATE = "template"
    NAV = "nav"
    HEADER = "header"
    FOOTER = "footer"
    ASIDE = "aside"
    FORM = "form"
    BUTTON = "button"
    INPUT = "input"
    SELECT = "select"
    TEXTAREA = "textarea"
    IFRAME = "iframe"
    FRAME = "frame"
    FRAMESET = "frameset"
    EMBED = "embed"
    OBJECT = "object"
    SVG = "svg"
    CANVAS = "canvas"

    # Containers
    MAIN = "main"
    ARTICLE = "article"
    SECTION = "section"
    DIV = "div"
    FIGURE = "figure"
    FIGCAPTION = "figcaption"
    ADDRESS = "address"
    DETAILS = "details"
    SUMMARY = "summary"
    CENTER = "center"

    # Text blocks
    P = "p"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    PRE = "pre"
    BLOCKQUOTE = "blockquote"
    HR = "hr"

    # Lists
    UL = "ul"
    OL = "ol"
    LI = "li"
    DL = "dl"
    DT = "dt"
    DD = "dd"

    # Tables
    TABLE = "table"
    CAPTION = "caption"
    THEAD = "thead"
    TBODY = "tbody"
    TFOOT = "tfoot"
    TR = "tr"
    TH = "th"
    TD = "td"

    # Inline
    A = "a"
    IMG = "img"
    BR = "br"
    CODE = "code"
    KBD = "kbd"
    SAMP = "samp"
    STRONG = "strong"
    B = "b"
    EM = "em"
    I = "i"  # noqa: E741
    SPAN = "span"

    @classmethod
    def from_tag(cls, name: str) -> ElementKind:
        try:
            kind = cls(name.lower())
        except ValueError:
            return cls.OTHER
        return cls.OTHER if kind in (cls.TEXT, cls.OTHER) else kind


HEADING_LEVELS: dict[ElementKind, int] = {
    ElementKind.H1: 1,
    ElementKind.H2: 2,
    ElementKind.H3: 3,
    ElementKind.H4: 4,
    ElementKind.H5: 5,
    ElementKind.H6: 6,
}

STRUCTURAL_NOISE: frozenset[ElementKind] = frozenset(
    {
        ElementKind.SCRIPT,
        ElementKind.STYLE,
        ElementKind.NOSCRIPT,
        ElementKind.TEMPLATE,
        ElementKind.NAV,
        ElementKind.HEADER,
        ElementKind.FOOTER,
        ElementKind.ASIDE,
        ElementKind.FORM,
        ElementKind.BUTTON,
        ElementKind.INPUT,
        ElementKind.SELECT,
        ElementKind.TEXTAREA,
        ElementKind.IFRAME,
        ElementKind.FRAME,
        ElementKind.FRAMESET,
        ElementKind.EMBED,
        ElementKind.OBJECT,
        ElementKind.SVG,
        ElementKind.CANVAS,
    },
)

# Elements that start a new line of flow; everything else is inline.
BLOCK_KINDS: frozenset[ElementKind] = frozenset(
    {
        ElementKind.HTML,
        ElementKind.HEAD,
        ElementKind.BODY,
        ElementKind.TITLE,
        ElementKind.MAIN,
        ElementKind.ARTICLE,
        ElementKind.SECTION,
        ElementKind.DIV,
        ElementKind.FIGURE,
        ElementKind.FIGCAPTION,
        ElementKind.ADDRESS,
        ElementKind.DETAILS,
        ElementKind.SUMMARY,
        ElementKind.CENTER,
        ElementKind.P,
        ElementKind.PRE,
        ElementKind.BLOCKQUOTE,
        ElementKind.HR,
        ElementKind.UL,
        ElementKind.OL,
        ElementKind.LI,
        ElementKind.DL,
        ElementKind.DT,
        ElementKind.DD,
        ElementKind.TABLE,
        ElementKind.CAPTION,
        ElementKind.THEAD,
        ElementKind.TBODY,
        ElementKind.TFOOT,
        ElementKind.TR,
        ElementKind.TH,
        ElementKind.TD,
        *HEADING_LEVELS,
        *STRUCTURAL_NOISE,
    },
)


def normalize_space(text: str) -> str:
    """Collapse HTML whitespace runs to single spaces and trim."""
    return _WS_RE.sub(" ", text).strip()


@dataclass
class Node:
    kind: ElementKind
    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list[int] = field(default_factory=list)
    parent: int | None = None
    text: str = ""

    @property
    def is_text(self) -> bool:
        return self.kind is ElementKind.TEXT

    @property
    def is_block(self) -> bool:
        return self.kind in BLOCK_KINDS


@dataclass
class TextStats:
    """Text measurements for one element, computed bottom-up.

    ``direct_*`` fields cover the element's own flow: its text leaves and
    inline descendants, stopping at nested block elements.
    """

    total_len: int = 0
    link_len: int = 0
    link_count: int = 0
    direct_len: int = 0
    direct_link_len: int = 0
    punctuation: int = 0

    @property
    def link_density(self) -> float:
        if self.total_len == 0:
            return 0.0
        return self.link_len / self.total_len

    @property
    def direct_plain_len(self) -> int:
        return self.direct_len - self.direct_link_len


class Document:
    """Arena of :class:`Node` objects for one parsed HTML string.

    Index ``root`` is the ``<html>`` element.  Indices are assigned in
    document order, so comparing two indices compares their position in the
    source.
    """

    def __init__(self) -> None:
        self.nodes: list[Node] = []
        self.root: int = 0
        self.title: str = ""
        self.base_href: str = ""
        self.guards_tripped: list[str] = []

    def __getitem__(self, idx: int) -> Node:
        return self.nodes[idx]

    def __len__(self) -> int:
        return len(self.nodes)

    def add(self, node: Node, parent: int | None) -> int:
        idx = len(self.nodes)
        node.parent = parent
        self.nodes.append(node)
        if parent is not None:
            self.nodes[parent].children.append(idx)
        return idx

    def detach(self, idx: int) -> None:
        """Unlink *idx* (and with it, its subtree) from its parent."""
        node = self.nodes[idx]
        if node.parent is None:
            return
        siblings = self.nodes[node.parent].children
        if idx in siblings:
            siblings.remove(idx)
        node.parent = None

    def iter_subtree(self, idx: int) -> Iterator[int]:
        """Yield *idx* and all its descendants in document order."""
        stack = [idx]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.nodes[current].children))

    def ancestors(self, idx: int) -> Iterator[int]:
        parent = self.nodes[idx].parent
        while parent is not None:
            yield parent
            parent = self.nodes[parent].parent

    def find_first(self, kind: ElementKind, root: int | None = None) -> int | None:
        start = self.root if root is None else root
        for idx in self.iter_subtree(start):
            if self.nodes[idx].kind is kind:
                return idx
        return None

    def find_all(self, kinds: frozenset[ElementKind], root: int | None = None) -> list[int]:
        start = self.root if root is None else root
        return [idx for idx in self.iter_subtree(start) if self.nodes[idx].kind in kinds]

    def text_content(self, idx: int) -> str:
        """Concatenated raw text of every leaf under *idx*."""
        return "".join(
            self.nodes[i].text for i in self.iter_subtree(idx) if self.nodes[i].is_text
        )

    @property
    def body(self) -> int | None:
        return self.find_first(ElementKind.BODY)

    def measure(self, root: int | None = None) -> dict[int, TextStats]:
        """Return :class:`TextStats` for every node reachable from *root*."""
        start = self.root if root is None else root
        order = list(self.iter_subtree(start))
        stats: dict[int, TextStats] = {}
        for idx in reversed(order):
            node = self.nodes[idx]
            if node.is_text:
                norm = normalize_space(node.text)
                stats[idx] = TextStats(
                    total_len=len(norm),
                    direct_len=len(norm),
                    punctuation=sum(1 for ch in norm if ch in _PUNCTUATION),
                )
                continue
            own = TextStats()
            for child in node.children:
                cs = stats[child]
                own.total_len += cs.total_len
                own.link_len += cs.link_len
                own.link_count += cs.link_count
                if not self.nodes[child].is_block:
                    own.direct_len += cs.direct_len
                    own.direct_link_len += cs.direct_link_len
                    own.punctuation += cs.punctuation
            if node.kind is ElementKind.A:
                own.link_len = own.total_len
                own.link_count += 1
                own.direct_link_len = own.direct_len
            stats[idx] = own
        return stats


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

def _attrs(tag: Tag) -> dict[str, str]:
    out: dict[str, str] = {}
    for key, val in tag.attrs.items():
        if isinstance(val, list):
            out[key] = " ".join(str(v) for v in val)
        else:
            out[key] = str(val)
    return out


def _flat_text(tag: Tag) -> str:
    """Text under *tag*, skipping noise elements, without recursion."""
    parts: list[str] = []
    stack: list[Tag | NavigableString] = [tag]
    while stack:
        current = stack.pop()
        if isinstance(current, Tag):
            if ElementKind.from_tag(current.name) in STRUCTURAL_NOISE:
                continue
            stack.extend(reversed(current.contents))
        elif not isinstance(current, PreformattedString):
            parts.append(str(current))
    return " ".join(parts)


def _trip(doc: Document, limit_name: str, limit: int, observed: int, *, strict: bool) -> None:
    if strict:
        raise ResourceGuardTripped(limit_name, limit, observed)
    reason = f"{limit_name}={limit} (saw {observed})"
    if reason not in doc.guards_tripped:
        logger.warning("Resource guard tripped: %s", reason)
        doc.guards_tripped.append(reason)


def build(
    html: str,
    config: ExtractionConfig | None = None,
    *,
    strict: bool = False,
) -> Document | None:
    """Parse *html* into a :class:`Document`.

    Returns ``None`` for empty or whitespace-only input.  Oversized input is
    truncated to ``config.max_input_chars``; elements nested deeper than
    ``config.max_depth`` are replaced by one flat text leaf holding their
    text.  With *strict*, either condition raises
    :class:`~pagedistill.errors.ResourceGuardTripped` instead.
    """
    cfg = config or DEFAULT_CONFIG
    if not html or not html.strip():
        return None

    doc = Document()
    if len(html) > cfg.max_input_chars:
        _trip(doc, "max_input_chars", cfg.max_input_chars, len(html), strict=strict)
        html = html[: cfg.max_input_chars]

    soup = BeautifulSoup(html, "lxml")

    head = soup.head
    title_tag = head.find("title") if head else None
    if isinstance(title_tag, Tag):
        doc.title = normalize_space(title_tag.get_text())
    base_tag = head.find("base", href=True) if head else None
    if isinstance(base_tag, Tag):
        doc.base_href = str(base_tag.get("href") or "").strip()

    html_tag = soup.find("html")
    doc.root = doc.add(Node(ElementKind.HTML, "html"), None)
    if not isinstance(html_tag, Tag):
        # lxml yields no <html> for some degenerate inputs; keep loose strings.
        text = _flat_text(soup)
        if text.strip():
            body = doc.add(Node(ElementKind.BODY, "body"), doc.root)
            doc.add(Node(ElementKind.TEXT, "#text", text=text), body)
        return doc
    doc.nodes[doc.root].attrs = _attrs(html_tag)

    stack: list[tuple[Tag | NavigableString, int, int]] = [
        (child, doc.root, 1) for child in reversed(html_tag.contents)
    ]
    while stack:
        item, parent, depth = stack.pop()
        if isinstance(item, Tag):
            if depth > cfg.max_depth:
                _trip(doc, "max_depth", cfg.max_depth, depth, strict=strict)
                text = _flat_text(item)
                if text:
                    doc.add(Node(ElementKind.TEXT, "#text", text=text), parent)
                continue
            name = (item.name or "").lower()
            idx = doc.add(Node(ElementKind.from_tag(name), name, _attrs(item)), parent)
            stack.extend((child, idx, depth + 1) for child in reversed(item.contents))
        elif isinstance(item, PreformattedString):
            continue
        elif str(item):
            doc.add(Node(ElementKind.TEXT, "#text", text=str(item)), parent)

    logger.debug("Built document: %d nodes, title=%r", len(doc), doc.title)
    return doc
