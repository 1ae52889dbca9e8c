#!/usr/bin/env python3
"""
Print the alt text attributions for one page (or every page) of a PDF as JSON
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from alt_locator.pikepdf_page import PikepdfDocument  # noqa: E402
from alt_locator.results import FallbackMode  # noqa: E402

logger = logging.getLogger("alt-locator-dump")


async def dump_images(pdf_path: Path, page: int, mode: str) -> dict:
    with PikepdfDocument.open(pdf_path) as document:
        indexes = [page - 1] if page else list(range(document.page_count))
        pages = []
        for index in indexes:
            results = await document.get_page_images(index, mode)
            pages.append({"page": index + 1, "images": [result.to_dict() for result in results]})
        return {"file": str(pdf_path), "fallbackMode": mode, "pages": pages}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip())
    parser.add_argument("pdf", type=Path, help="PDF file to inspect")
    parser.add_argument("--page", type=int, default=0, help="1-based page number (default: all pages)")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in FallbackMode],
        default=FallbackMode.SPATIAL.value,
        help="ordering used when images cannot be linked by MCID",
    )
    parser.add_argument("--verbose", action="store_true", help="log resolver decisions")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.pdf.exists():
        parser.error(f"{args.pdf} does not exist")

    try:
        payload = asyncio.run(dump_images(args.pdf, args.page, args.mode))
    except IndexError as exc:
        logger.error("%s", exc)
        return 2

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
