"""Heuristic constants for extraction, plus YAML profile loading.

Every tunable the scorer, filters and title resolver use lives on
:class:`ExtractionConfig`.  Profiles follow the same layout as crawl
profiles: a ``default`` mapping merged with the longest matching entry
under ``domains``::

    default:
      max_link_density: 0.75
    domains:
      docs.example.com:
        positive_keywords: [article, content, markdown-body]
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

from pagedistill.errors import ConfigError

# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------

_POSITIVE_KEYWORDS: tuple[str, ...] = (
    "article",
    "blog",
    "content",
    "entry",
    "main",
    "markdown",
    "post",
    "prose",
    "story",
)

_NEGATIVE_KEYWORDS: tuple[str, ...] = (
    "ad",
    "ads",
    "advert",
    "banner",
    "breadcrumb",
    "comment",
    "footer",
    "menu",
    "nav",
    "promo",
    "related",
    "share",
    "sidebar",
    "social",
    "sponsor",
    "widget",
)


@dataclass(frozen=True)
class ExtractionConfig:
    """All heuristic knobs in one place.

    ``propagation`` holds the fraction of a paragraph's score credited to its
    parent, grandparent and great-grandparent, in that order.
    """

    positive_keywords: tuple[str, ...] = _POSITIVE_KEYWORDS
    negative_keywords: tuple[str, ...] = _NEGATIVE_KEYWORDS
    keyword_weight: float = 25.0
    max_keyword_hits: int = 2
    max_length_bonus: int = 3
    propagation: tuple[float, ...] = (1.0, 0.5, 0.25)
    min_score: float = 0.0

    # Heuristic noise filter
    max_link_density: float = 0.8
    max_direct_text: int = 20
    min_prune_links: int = 2

    # Title resolution
    max_title_chars: int = 150

    # Resource guards
    max_input_chars: int = 5_000_000
    max_depth: int = 200

    def replace(self, **changes: Any) -> ExtractionConfig:
        """Return a copy with *changes* applied."""
        return dataclasses.replace(self, **changes)


DEFAULT_CONFIG = ExtractionConfig()

_FIELD_TYPES: dict[str, type] = {
    f.name: type(getattr(DEFAULT_CONFIG, f.name))
    for f in dataclasses.fields(ExtractionConfig)
}


def _coerce(key: str, value: Any) -> Any:
    expected = _FIELD_TYPES[key]
    if expected is tuple:
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ConfigError(f"{key} must be a list, got {type(value).__name__}")
        return tuple(value)
    if expected is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, expected) or isinstance(value, bool):
        raise ConfigError(
            f"{key} must be {expected.__name__}, got {type(value).__name__}",
        )
    return value


def config_from_mapping(
    data: dict[str, Any],
    base: ExtractionConfig = DEFAULT_CONFIG,
) -> ExtractionConfig:
    """Build a config from a plain mapping, validating keys and types."""
    unknown = sorted(set(data) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    changes = {key: _coerce(key, value) for key, value in data.items()}
    return base.replace(**changes)


def load_config(path: str | Path, url: str = "") -> ExtractionConfig:
    """Load YAML profile at *path* and return the config that applies to *url*."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    default = data.get("default") or {}
    domains = data.get("domains") or {}
    if not isinstance(default, dict) or not isinstance(domains, dict):
        raise ConfigError(f"{path}: 'default' and 'domains' must be mappings")

    netloc = urlparse(url).netloc.lower()
    best_key = ""
    best_cfg: dict[str, Any] = {}
    for key, cfg in domains.items():
        if not isinstance(key, str) or not isinstance(cfg, dict):
            continue
        key_lower = key.lower()
        if (netloc == key_lower or netloc.endswith("." + key_lower)) and (
            len(key_lower) > len(best_key)
        ):
            best_key = key_lower
            best_cfg = cfg

    merged: dict[str, Any] = {}
    merged.update(default)
    merged.update(best_cfg)
    return config_from_mapping(merged)
