"""
CLI Entry Point: Simulate print pagination on an HTML file

Renders the file in headless Chromium, pushes every layout block that would
straddle a page boundary onto the next page, and writes the adjusted
container markup.

Usage:
    python scripts/paginate_html.py resume.html -o resume.paginated.html
    python scripts/paginate_html.py resume.html --page-height 1123 --json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.common.config import Config
from src.common.logger import LOG_FORMATS, is_debug_mode, set_global_debug_mode, setup_logging
from src.pagination.playwright_backend import paginate_html
from src.pagination.types import PageGeometry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Push layout blocks off simulated page boundaries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s resume.html -o out.html
  %(prog)s resume.html --css print.css --block-selector ".entry" --json
        """,
    )
    parser.add_argument("input", help="HTML file to paginate")
    parser.add_argument("-o", "--output", help="Write the paginated container markup here")
    parser.add_argument("--css", help="Extra CSS file to inline")
    parser.add_argument("--page-height", type=float, default=Config.PAGE_HEIGHT_PX,
                        help=f"Simulated page height in px (default: {Config.PAGE_HEIGHT_PX})")
    parser.add_argument("--gap", type=float, default=Config.PAGE_GAP_PX,
                        help=f"Inter-page gap in px (default: {Config.PAGE_GAP_PX})")
    parser.add_argument("--buffer", type=float, default=Config.PAGE_BUFFER_PX,
                        help=f"Clearance past the gap in px (default: {Config.PAGE_BUFFER_PX})")
    parser.add_argument("--container-selector", default=Config.LAYOUT_CONTAINER_SELECTOR,
                        help="Layout container selector")
    parser.add_argument("--block-selector", default=Config.LAYOUT_BLOCK_SELECTOR,
                        help="Layout block selector")
    parser.add_argument("--json", action="store_true", help="Print the pass result as JSON")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug mode: log every pass and pushed block")
    parser.add_argument("--log-format", choices=LOG_FORMATS, default=Config.LOG_FORMAT,
                        help=f"Log line format (default: {Config.LOG_FORMAT})")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_global_debug_mode(True)
    setup_logging(level="DEBUG" if is_debug_mode() else "WARNING", format=args.log_format)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"❌ Input file not found: {input_path}", file=sys.stderr)
        return 1

    css = None
    if args.css:
        css_path = Path(args.css)
        if not css_path.exists():
            print(f"❌ CSS file not found: {css_path}", file=sys.stderr)
            return 1
        css = css_path.read_text(encoding="utf-8")

    try:
        geometry = PageGeometry(page_height=args.page_height, gap_height=args.gap, buffer=args.buffer)
    except ValueError as e:
        print(f"❌ Invalid page geometry: {e}", file=sys.stderr)
        return 2

    snapshot, result = asyncio.run(paginate_html(
        input_path.read_text(encoding="utf-8"),
        css=css,
        geometry=geometry,
        container_selector=args.container_selector,
        block_selector=args.block_selector,
    ))

    if args.output and snapshot is not None:
        Path(args.output).write_text(snapshot, encoding="utf-8")

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.skipped:
        print(f"⚠️  Pass skipped: {result.skip_reason}")
    elif result.failed:
        print(f"❌ Pass failed: {result.skip_reason}")
    else:
        print(f"✓ {result.block_count} blocks, {len(result.pushed)} pushed, {result.page_count} pages")
        for block_id in result.pushed:
            print(f"  - {block_id}: +{result.offsets[block_id]:.1f}px")
        if args.output:
            print(f"  Wrote {args.output}")

    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
