"""URL helpers: link resolution, source normalization, URL-derived titles."""

from __future__ import annotations

from urllib.parse import (
    ParseResult,
    parse_qs,
    unquote,
    urlencode,
    urljoin,
    urlparse,
    urlunparse,
)

# Query parameters that carry no semantic meaning for content identity
_TRACKING_PARAMS: frozenset[str] = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "utm_id",
        "fbclid",
        "gclid",
        "dclid",
        "msclkid",
        "mc_cid",
        "mc_eid",
        "igshid",
        "_ga",
    },
)

_DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

# Trailing extensions stripped from URL-derived titles
DOCUMENT_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".html",
        ".htm",
        ".xhtml",
        ".shtml",
        ".php",
        ".asp",
        ".aspx",
        ".jsp",
        ".md",
        ".markdown",
        ".txt",
        ".pdf",
        ".doc",
        ".docx",
    },
)

# Link schemes that never make sense in extracted Markdown
_DEAD_SCHEMES: tuple[str, ...] = ("javascript:", "vbscript:", "data:")


def resolve_link(base_url: str, href: str) -> str:
    """Resolve *href* against *base_url*; return "" for unusable links.

    Spaces and parentheses are percent-encoded so the result can sit inside
    a Markdown ``(...)`` destination.
    """
    href = href.strip()
    if not href or href.lower().startswith(_DEAD_SCHEMES):
        return ""
    if base_url:
        try:
            href = urljoin(base_url, href)
        except ValueError:
            pass
    return href.replace(" ", "%20").replace("(", "%28").replace(")", "%29")


def normalize_source(url: str) -> str:
    """Return a canonical form of *url* for use as a document source id.

    HTTP(S) URLs get a lowercased scheme and host, no default port, no
    fragment and no tracking parameters.  Anything else (file paths,
    ``clipboard://`` ids) is returned stripped but otherwise unchanged.
    """
    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    scheme = parsed.scheme.lower()
    if scheme not in ("http", "https"):
        return url

    netloc = parsed.netloc.lower()
    if ":" in netloc:
        host, _, port_str = netloc.rpartition(":")
        if port_str.isdigit() and _DEFAULT_PORTS.get(scheme) == int(port_str):
            netloc = host

    query = ""
    if parsed.query:
        qs = parse_qs(parsed.query, keep_blank_values=True)
        cleaned = {k: v for k, v in qs.items() if k.lower() not in _TRACKING_PARAMS}
        query = urlencode(sorted(cleaned.items()), doseq=True)

    return urlunparse(
        ParseResult(
            scheme=scheme,
            netloc=netloc,
            path=parsed.path,
            params=parsed.params,
            query=query,
            fragment="",
        ),
    )


def title_from_source(source: str) -> str:
    """Derive a title from the last path segment of a URL or file path.

    Example:
        https://example.com/docs/Getting%20Started.html -> Getting Started
    """
    source = source.strip()
    if not source:
        return ""
    try:
        parsed = urlparse(source)
        path = parsed.path if parsed.scheme or parsed.netloc else source.split("?")[0]
    except ValueError:
        path = source
    path = path.replace("\\", "/")

    segment = next((s for s in reversed(path.split("/")) if s), "")
    segment = unquote(segment).strip()
    stem, dot, ext = segment.rpartition(".")
    if dot and stem and f".{ext.lower()}" in DOCUMENT_EXTENSIONS:
        segment = stem
    return segment.strip()
