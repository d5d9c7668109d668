"""
Analyze a post from the command line, without the HTTP service.

Usage::

    # Simulated detection and metrics, settings from config/settings.yaml:
    brandscan https://instagram.com/p/abc Nike Adidas

    # Force a detection and make the simulated metrics reproducible:
    brandscan https://x.com/user/status/1 Nike --detection-mode always --seed 7

    # Print the transport JSON instead of a summary:
    brandscan https://youtube.com/watch?v=1 Nike --json
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import random
import sys
from typing import List, Optional

from dotenv import load_dotenv

from brandscan.analyzer import AnalysisContext, analyze_post
from brandscan.config import get_settings
from brandscan.exceptions import ConfigurationError
from brandscan.models import AnalysisOutcome, AnalysisResult
from brandscan.sources import DETECTION_MODES, build_logo_detector, build_metrics_source
from brandscan.valuation import format_media_value

logger = logging.getLogger("brandscan")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brandscan",
        description="Estimate the media value of brand exposure in a social post",
    )
    parser.add_argument("post_url", help="URL of the social-media post")
    parser.add_argument("brands", nargs="+", help="Brand names to look for")
    parser.add_argument(
        "--detection-mode",
        choices=DETECTION_MODES,
        help="Override the configured logo detection mode",
    )
    parser.add_argument("--cpm", type=float, help="Cost per thousand impressions")
    parser.add_argument("--cpe", type=float, help="Cost per engagement")
    parser.add_argument(
        "--seed", type=int, help="Seed for simulated detection and metrics"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the result as JSON"
    )
    return parser


def format_summary(result: AnalysisResult) -> str:
    """Render a result for a terminal."""
    lines = [f"Platform:      {result.platform.value}"]
    if result.outcome is AnalysisOutcome.ERROR:
        lines.append(f"Error:         {result.error}")
    elif result.outcome is AnalysisOutcome.NO_DETECTION:
        lines.append(f"Result:        {result.message}")
    else:
        assert result.metrics is not None and result.media_value is not None
        engagements = result.metrics.engagements
        lines.extend(
            [
                f"Brand:         {result.brand}",
                f"Impressions:   {result.metrics.impressions:,}",
                f"Engagements:   {engagements.total:,} "
                f"(likes {engagements.likes:,}, shares {engagements.shares:,}, "
                f"comments {engagements.comments:,})",
                f"Clicks:        {result.metrics.clicks:,}",
                f"Media value:   {format_media_value(result.media_value)}",
            ]
        )
    return "\n".join(lines)


async def run(argv: Optional[List[str]] = None) -> int:
    """Parse *argv*, analyze the post and print the outcome.

    Returns:
        Process exit code: 0 for a detected or no-detection result, 1 for an
        error result, 2 for invalid configuration.
    """
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
        overrides = {"processing_delay_seconds": 0.0}
        if args.detection_mode:
            overrides["detection_mode"] = args.detection_mode
        if args.cpm is not None:
            overrides["cpm"] = args.cpm
        if args.cpe is not None:
            overrides["cpe"] = args.cpe
        settings = dataclasses.replace(settings, **overrides)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    rng = random.Random(args.seed) if args.seed is not None else None
    context = AnalysisContext.from_settings(
        settings,
        metrics_source=build_metrics_source(settings, rng=rng),
        logo_detector=build_logo_detector(settings, rng=rng),
    )

    result = await analyze_post(args.post_url, args.brands, context)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_summary(result))
    return 1 if result.outcome is AnalysisOutcome.ERROR else 0


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        sys.exit(asyncio.run(run()))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(0)


if __name__ == "__main__":
    main()
