"""Command-line entry point for Opportunity Radar.

Usage:
    opportunity-radar --profile profile.yaml --catalog catalog.yaml
    opportunity-radar --profile profile.yaml --catalog catalog.yaml --manual --json
    opportunity-radar --profile profile.yaml --catalog catalog.yaml --every 2
"""
import argparse
import asyncio
import json
import logging
from pathlib import Path

import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from opportunity_radar.catalog import load_catalog
from opportunity_radar.engine import DiscoveryEngine, build_engine
from opportunity_radar.exceptions import CatalogUnavailableError
from opportunity_radar.logging_config import setup_logging
from opportunity_radar.models import DiscoveryResult, Profile, Trigger
from opportunity_radar.session import DiscoverySession
from opportunity_radar.settings import settings

logger = logging.getLogger(__name__)


def load_profile(path: str | Path) -> Profile:
    """Load a profile from YAML (role, department, skills, interests)."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return Profile.model_validate(data)


def format_result(result: DiscoveryResult, as_json: bool = False) -> str:
    if as_json:
        return json.dumps(
            {
                "opportunities": [o.to_dict() for o in result.opportunities],
                "meta": result.meta.to_dict(),
            },
            indent=2,
        )

    meta = result.meta
    lines = [
        f"{meta.status.value}: {meta.sources_succeeded}/{meta.sources_attempted} sources "
        f"in {meta.duration_ms}ms, {len(result.opportunities)} opportunities "
        f"({meta.ai_boosted_count} ai-boosted)",
    ]
    for error in meta.errors:
        lines.append(f"  ! {error.source}: {error.kind.value} - {error.message}")
    for opp in result.opportunities:
        lines.append(
            f"{opp.match_score:6.2f}  [{opp.match_method.value:>10}]  {opp.title} @ {opp.company}  {opp.source_url}"
        )
    return "\n".join(lines)


async def run_discovery(
    engine: DiscoveryEngine,
    session: DiscoverySession,
    profile: Profile,
    catalog_path: str,
    trigger: Trigger,
    as_json: bool = False,
) -> None:
    try:
        result = await engine.discover(profile, session, lambda: load_catalog(catalog_path), trigger=trigger)
    except CatalogUnavailableError as e:
        logger.error("Discovery aborted: %s", e)
        return
    print(format_result(result, as_json=as_json))


async def async_main(args: argparse.Namespace) -> None:
    setup_logging(level=args.log_level or settings.log_level, log_file=settings.log_file)
    profile = load_profile(args.profile)
    engine = build_engine(settings)
    session = engine.sessions.open(profile.email or "cli@localhost")
    trigger = Trigger.MANUAL if args.manual else Trigger.AUTO

    try:
        if not args.every:
            await run_discovery(engine, session, profile, args.catalog, trigger, args.json)
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            run_discovery,
            IntervalTrigger(minutes=args.every),
            args=[engine, session, profile, args.catalog, Trigger.AUTO, args.json],
            id="discovery",
            name="Automatic discovery",
            max_instances=1,
        )
        scheduler.start()
        logger.info("Automatic discovery every %s minute(s). Press Ctrl+C to stop.", args.every)
        try:
            await run_discovery(engine, session, profile, args.catalog, trigger, args.json)
            while True:
                await asyncio.sleep(60)
        finally:
            scheduler.shutdown()
    finally:
        await engine.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discover and rank opportunities for a profile.")
    parser.add_argument("--profile", required=True, help="Profile YAML file")
    parser.add_argument("--catalog", required=True, help="Curated catalog YAML file")
    parser.add_argument("--manual", action="store_true", help="Manual refresh (bypasses the throttle)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    parser.add_argument("--every", type=float, default=None, help="Re-run automatically every N minutes")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return parser


def main():
    """Main entry point."""
    args = build_parser().parse_args()
    try:
        asyncio.run(async_main(args))
    except KeyboardInterrupt:
        logger.info("Shutdown complete.")


if __name__ == "__main__":
    main()
