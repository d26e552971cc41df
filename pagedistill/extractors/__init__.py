"""Extraction sub-package: parsing, noise removal, scoring, titles, Markdown."""

from .dom import Document, ElementKind, Node, build
from .markdown import serialize
from .noise import prune_low_value, strip_structural
from .scoring import ScoredNode, select_main_content
from .title import resolve_title
from .urlnorm import normalize_source, resolve_link, title_from_source

__all__ = [
    "Document",
    "ElementKind",
    "Node",
    "ScoredNode",
    "build",
    "normalize_source",
    "prune_low_value",
    "resolve_link",
    "resolve_title",
    "select_main_content",
    "serialize",
    "strip_structural",
    "title_from_source",
]
