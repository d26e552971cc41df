"""Main-content selection by paragraph scoring.

Every text-bearing block ("paragraph") earns a raw score from its own text:
one point for existing, one per comma-like mark, and up to
``max_length_bonus`` points for length.  The raw score is credited to the
paragraph itself when it is a candidate and, scaled by
``config.propagation``, to its parent, grandparent and great-grandparent.
Table rows and sections are skipped when counting those levels, so cells
credit the element that wraps the table.
Candidates start from a class/id keyword weight.  The aggregate is scaled
by ``1 - link_density`` and the highest aggregate wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from pagedistill.config import DEFAULT_CONFIG, ExtractionConfig
from pagedistill.extractors.dom import Document, ElementKind, Node, TextStats

logger = logging.getLogger(__name__)

# Nodes that may be returned as the main content.
_CANDIDATE_KINDS: frozenset[ElementKind] = frozenset(
    {
        ElementKind.BODY,
        ElementKind.MAIN,
        ElementKind.ARTICLE,
        ElementKind.SECTION,
        ElementKind.DIV,
        ElementKind.TD,
        ElementKind.BLOCKQUOTE,
        ElementKind.P,
        ElementKind.PRE,
    },
)

# Nodes whose own text is scored and propagated upward.
_PARAGRAPH_KINDS: frozenset[ElementKind] = frozenset(
    {
        ElementKind.P,
        ElementKind.PRE,
        ElementKind.TD,
        ElementKind.BLOCKQUOTE,
        ElementKind.LI,
        ElementKind.DD,
        ElementKind.DIV,
        ElementKind.SECTION,
        ElementKind.ARTICLE,
        ElementKind.MAIN,
    },
)

# Row and section wrappers between a cell and its container; they do not
# use up a propagation level.
_TABLE_STRUCTURE: frozenset[ElementKind] = frozenset(
    {
        ElementKind.TABLE,
        ElementKind.THEAD,
        ElementKind.TBODY,
        ElementKind.TFOOT,
        ElementKind.TR,
    },
)

_SEMANTIC_CONTENT: frozenset[ElementKind] = frozenset({ElementKind.ARTICLE, ElementKind.MAIN})
_KEYWORD_ATTRS: tuple[str, ...] = ("class", "id", "role", "itemprop")
_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")


@dataclass
class ScoredNode:
    """Score bookkeeping for one candidate; rebuilt on every call."""

    index: int
    score: float = 0.0
    propagated: float = 0.0
    text_len: int = 0
    link_density: float = 0.0

    @property
    def total(self) -> float:
        return (self.score + self.propagated) * (1.0 - self.link_density)


def _token_matches(token: str, keyword: str) -> bool:
    # Short keywords ("ad", "nav") must match a whole token to avoid hits
    # inside words like "header" or "canvas".
    if len(keyword) < 4:
        return token == keyword
    return keyword in token


def keyword_weight(node: Node, config: ExtractionConfig | None = None) -> float:
    """Return the class/id weight of *node*, capped at ``max_keyword_hits``."""
    cfg = config or DEFAULT_CONFIG
    combined = " ".join(node.attrs.get(attr, "") for attr in _KEYWORD_ATTRS).lower()
    tokens = [tok for tok in _TOKEN_SPLIT_RE.split(combined) if tok]

    hits = 0
    for kw in cfg.positive_keywords:
        if any(_token_matches(tok, kw) for tok in tokens):
            hits += 1
    for kw in cfg.negative_keywords:
        if any(_token_matches(tok, kw) for tok in tokens):
            hits -= 1
    if node.kind in _SEMANTIC_CONTENT:
        hits += 1

    cap = cfg.max_keyword_hits
    hits = max(-cap, min(cap, hits))
    return hits * cfg.keyword_weight


def paragraph_score(stats: TextStats, config: ExtractionConfig | None = None) -> float:
    """Raw score of a paragraph from its own (direct) text."""
    cfg = config or DEFAULT_CONFIG
    if stats.direct_len == 0:
        return 0.0
    length_bonus = min(cfg.max_length_bonus, stats.direct_len // 100)
    return 1.0 + stats.punctuation + length_bonus


def score_candidates(
    doc: Document,
    config: ExtractionConfig | None = None,
    stats: dict[int, TextStats] | None = None,
) -> dict[int, ScoredNode]:
    """Score every candidate reachable from the document root."""
    cfg = config or DEFAULT_CONFIG
    stats = stats if stats is not None else doc.measure()
    scored: dict[int, ScoredNode] = {}

    def _entry(idx: int) -> ScoredNode:
        entry = scored.get(idx)
        if entry is None:
            st = stats[idx]
            entry = ScoredNode(
                index=idx,
                score=keyword_weight(doc[idx], cfg),
                text_len=st.total_len,
                link_density=st.link_density,
            )
            scored[idx] = entry
        return entry

    for idx in doc.iter_subtree(doc.root):
        node = doc[idx]
        if node.kind not in _PARAGRAPH_KINDS:
            continue
        raw = paragraph_score(stats[idx], cfg)
        if raw <= 0:
            continue
        if node.kind in _CANDIDATE_KINDS:
            _entry(idx).score += raw
        level = 0
        for ancestor in doc.ancestors(idx):
            if level >= len(cfg.propagation):
                break
            kind = doc[ancestor].kind
            if kind in _TABLE_STRUCTURE:
                continue
            if kind in _CANDIDATE_KINDS:
                _entry(ancestor).propagated += raw * cfg.propagation[level]
            level += 1

    return scored


def _fallback(doc: Document, stats: dict[int, TextStats]) -> int:
    body = doc.body
    if body is not None and stats.get(body, TextStats()).total_len > 0:
        return body
    return doc.root


def select_main_content(doc: Document, config: ExtractionConfig | None = None) -> int:
    """Return the index of the node most likely to hold the page's content.

    Ties go to the node with more text, then to the earlier node.  When no
    candidate beats ``config.min_score`` (or a resource guard tripped while
    building), the ``<body>`` is returned, or the document root if the body
    has no text left.
    """
    cfg = config or DEFAULT_CONFIG
    stats = doc.measure()

    if doc.guards_tripped:
        logger.debug("Skipping scoring, guards tripped: %s", doc.guards_tripped)
        return _fallback(doc, stats)

    scored = score_candidates(doc, cfg, stats)
    if not scored:
        return _fallback(doc, stats)

    best = max(scored.values(), key=lambda s: (s.total, s.text_len, -s.index))
    if best.total <= cfg.min_score:
        logger.debug("Best candidate %d scored %.2f, using fallback", best.index, best.total)
        return _fallback(doc, stats)

    logger.debug(
        "Selected <%s> node %d: score=%.2f text_len=%d link_density=%.2f",
        doc[best.index].tag,
        best.index,
        best.total,
        best.text_len,
        best.link_density,
    )
    return best.index
