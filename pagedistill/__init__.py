"""pagedistill - turn noisy HTML into clean Markdown plus a title.

Quick usage::

    from pagedistill import extract

    result = extract(html, "https://example.com/blog/some-post")
    print(result.title)
    print(result.content)

Tuning the heuristics::

    from pagedistill import ExtractionConfig, extract

    config = ExtractionConfig(max_link_density=0.6)
    result = extract(html, url, config)
"""

from pagedistill.config import DEFAULT_CONFIG, ExtractionConfig, load_config
from pagedistill.errors import ConfigError, PageDistillError, ResourceGuardTripped
from pagedistill.items import ExtractionResult
from pagedistill.query import extract, extract_file

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_CONFIG",
    "ConfigError",
    "ExtractionConfig",
    "ExtractionResult",
    "PageDistillError",
    "ResourceGuardTripped",
    "extract",
    "extract_file",
    "load_config",
]
