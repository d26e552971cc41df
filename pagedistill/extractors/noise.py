"""Two-stage noise removal.

``strip_structural`` drops elements by kind before scoring (scripts, nav,
headers, footers, forms, embeds...).  ``prune_low_value`` runs after the
main content is chosen and drops link-heavy containers that used generic
tags, e.g. a ``<div>`` of related-post links inside an article.

Both passes only detach nodes, so running either one twice is a no-op.
"""

from __future__ import annotations

import logging

from pagedistill.config import DEFAULT_CONFIG, ExtractionConfig
from pagedistill.extractors.dom import STRUCTURAL_NOISE, Document, ElementKind

logger = logging.getLogger(__name__)

# Generic containers the heuristic pass may remove.  Paragraphs, headings
# and inline links are never pruned on link density alone.
_PRUNABLE_KINDS: frozenset[ElementKind] = frozenset(
    {
        ElementKind.DIV,
        ElementKind.SECTION,
        ElementKind.UL,
        ElementKind.OL,
        ElementKind.DL,
        ElementKind.TABLE,
    },
)


def strip_structural(doc: Document, root: int | None = None) -> int:
    """Detach every structural-noise element under *root*; return *root*."""
    start = doc.root if root is None else root
    doomed = [
        idx
        for idx in doc.iter_subtree(start)
        if idx != start and doc[idx].kind in STRUCTURAL_NOISE
    ]
    for idx in doomed:
        doc.detach(idx)
    if doomed:
        logger.debug("Structural filter removed %d element(s)", len(doomed))
    return start


def prune_low_value(
    doc: Document,
    node: int,
    config: ExtractionConfig | None = None,
) -> int:
    """Detach link-heavy, text-poor containers below *node*; return *node*.

    A descendant is removed when its link density exceeds
    ``config.max_link_density``, it holds at least ``config.min_prune_links``
    links, and its own non-link text is at most ``config.max_direct_text``
    characters.  *node* itself is never removed.
    """
    cfg = config or DEFAULT_CONFIG
    stats = doc.measure(node)

    removed = 0
    stack = list(reversed(doc[node].children))
    while stack:
        idx = stack.pop()
        current = doc[idx]
        if current.is_text:
            continue
        st = stats[idx]
        if (
            current.kind in _PRUNABLE_KINDS
            and st.link_count >= cfg.min_prune_links
            and st.link_density > cfg.max_link_density
            and st.direct_plain_len <= cfg.max_direct_text
        ):
            doc.detach(idx)
            removed += 1
            continue
        stack.extend(reversed(current.children))

    if removed:
        logger.debug("Heuristic filter removed %d element(s) under node %d", removed, node)
    return node
