"""CLI entry point: python -m pagedistill FILE [options]"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from pagedistill.config import DEFAULT_CONFIG, load_config
from pagedistill.errors import ConfigError, ResourceGuardTripped
from pagedistill.query import extract

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_GUARD_TRIPPED = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagedistill",
        description=(
            "Extract the main content of an HTML document as Markdown.\n"
            "Reads a saved file (or stdin with '-'); never touches the network."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", metavar="FILE",
                        help="HTML file to read, or '-' for stdin")
    parser.add_argument("--url", default=None, metavar="URL",
                        help="Source URL for link resolution and title fallback "
                             "(default: the file path)")
    parser.add_argument("--config", default=None, metavar="YAML",
                        help="YAML profile with heuristic overrides")
    parser.add_argument("--json", action="store_true", default=False,
                        help="Print title, source, format and content as JSON")
    parser.add_argument("--strict", action="store_true", default=False,
                        help="Fail (exit 2) instead of truncating oversized/deep input")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    return parser


def _read_input(name: str) -> str:
    if name == "-":
        return sys.stdin.read()
    return Path(name).read_bytes().decode("utf-8", errors="replace")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    err = Console(stderr=True)

    try:
        html = _read_input(args.input)
    except OSError as exc:
        err.print(f"[bold red]Cannot read {escape(args.input)}:[/bold red] {escape(str(exc))}")
        return EXIT_INPUT_ERROR
    logger.debug("Read %d chars from %s", len(html), args.input)

    source = args.url or ("" if args.input == "-" else args.input)
    try:
        config = load_config(args.config, source) if args.config else DEFAULT_CONFIG
    except (OSError, ConfigError) as exc:
        err.print(f"[bold red]Bad config:[/bold red] {escape(str(exc))}")
        return EXIT_INPUT_ERROR

    try:
        result = extract(html, source, config, strict=args.strict)
    except ResourceGuardTripped as exc:
        err.print(f"[bold yellow]Resource guard tripped:[/bold yellow] {escape(str(exc))}")
        return EXIT_GUARD_TRIPPED

    if args.json:
        payload = {**result.metadata(source), "content": result.content}
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
        return EXIT_OK

    out = Console()
    if out.is_terminal and result.title:
        out.print(Panel.fit(Text(result.title, style="bold cyan"), title="pagedistill"))
    sys.stdout.write(result.content + "\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
