"""Command line entry point for mailsweep."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from typing import Optional, Sequence

from .automation.browser import BrowserManager
from .core.config import config
from .core.exceptions import MailsweepError
from .core.logger import log
from .vision.debug import DiagnosticsSink
from .vision.matcher import ImageMatcher, MatcherSettings
from .vision.page import PlaywrightPageSurface
from .vision.references import ReferenceImageSet

EXIT_FOUND = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mailsweep", description="Image-driven webmail triage")
    sub = parser.add_subparsers(dest="command", required=True)

    refs = sub.add_parser("references", help="List the reference images that would be matched")
    refs.add_argument("--images", default=config.get_images_path(), help="Reference image directory")

    match = sub.add_parser("match", help="Check whether a page shows any reference image")
    match.add_argument("url", help="Page to open")
    match.add_argument("--images", default=config.get_images_path(), help="Reference image directory")
    match.add_argument("--threshold", type=float, default=config.image_match_threshold)
    match.add_argument("--pixel-threshold", type=float, default=config.pixel_match_threshold)
    match.add_argument("--headed", action="store_true", help="Show the browser window")
    return parser


def cmd_references(args: argparse.Namespace) -> int:
    references = ReferenceImageSet.load(args.images)
    for reference in references:
        print(f"{reference.name}\t{reference.width}x{reference.height}")
    print(f"{len(references)} reference images")
    return EXIT_FOUND


async def cmd_match(args: argparse.Namespace) -> int:
    references = ReferenceImageSet.load(args.images)
    settings = replace(
        MatcherSettings.from_config(config),
        threshold=args.threshold,
        pixel_threshold=args.pixel_threshold,
    )
    matcher = ImageMatcher(
        settings, diagnostics=DiagnosticsSink(config.debug_dir, enabled=config.save_failed_matches)
    )

    browser = BrowserManager()
    await browser.launch(headless=config.headless and not args.headed)
    try:
        page, _context = await browser.new_page(config.storage_state_path)
        await browser.goto(page, args.url, config.timeout)
        result = await matcher.find_target_image(PlaywrightPageSurface(page), references)
    finally:
        await browser.close()

    if not result.found:
        print("no match")
        return EXIT_NOT_FOUND
    print(f"match\t{result.reference_path}\t{result.match_rate:.4f}")
    return EXIT_FOUND


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config.validate_config()
        if args.command == "references":
            return cmd_references(args)
        return asyncio.run(cmd_match(args))
    except (MailsweepError, ValueError) as exc:
        log.error(str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
