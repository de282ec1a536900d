#!/usr/bin/env python3
"""Command-line interface for casinoscrape.

Commands:
  - casinoscrape games     : List configured games and scraper availability
  - casinoscrape validate  : Validate a games config file
  - casinoscrape plan      : Show the next fire times of a trigger expression
  - casinoscrape scrape    : Run one game's scraper and print its records
  - casinoscrape run       : Run one full scraping cycle and print the TaskRun
  - casinoscrape serve     : Run the scheduler until interrupted

Typical usage:
  casinoscrape scrape --game crazy-time --store data/records.json
  casinoscrape serve --cron "*/10 * * * *" --timezone Europe/Madrid --run-on-init
"""

from __future__ import annotations

import argparse
import asyncio
import datetime
import json
import logging
import sys
from typing import Any

from casinoscrape import __version__
from casinoscrape.config.loader import games_by_provider, games_by_type, load_games
from casinoscrape.config.settings import Settings, get_settings
from casinoscrape.monitoring.logging import LoggingOptions, setup_logging
from casinoscrape.runtime.errors import InvalidTrigger, NavigationFailure, NotSupported
from casinoscrape.scheduling.schedule import next_run_times, parse_schedule
from casinoscrape.scheduling.scheduler import TaskScheduler
from casinoscrape.scrapers.registry import ScraperRegistry

logger = logging.getLogger("casinoscrape.cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="casinoscrape", description="Live casino game scraper")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--json-logs", action="store_true", default=None, help="Emit JSON logs")
    p.add_argument("--log-level", default=None, help="Log level (default from settings)")
    p.add_argument("--store", default=None, help="JSON record store path (default: in-memory)")
    p.add_argument("--games-config", default=None, help="Games config file (YAML or JSON)")
    p.add_argument("--headed", action="store_true", help="Run with a headed browser")
    sub = p.add_subparsers(dest="cmd")

    # games
    pg = sub.add_parser("games", help="List configured games")
    pg.add_argument("--type", dest="game_type", default=None, help="Only games of this type (e.g. game-show)")
    pg.add_argument("--provider", default=None, help="Only games from this provider")

    # validate
    pv = sub.add_parser("validate", help="Validate a games config file")
    pv.add_argument("--config", "-c", required=True, help="Path to YAML/JSON games config")

    # plan
    pp = sub.add_parser("plan", help="Show next fire times of a trigger")
    pp.add_argument("--cron", default=None, help="Cron expression or interval (default from settings)")
    pp.add_argument("--timezone", default=None, help="IANA timezone")
    pp.add_argument("-n", type=int, default=5, help="Number of fire times")

    # scrape
    ps = sub.add_parser("scrape", help="Run one game's scraper")
    ps.add_argument("--game", "-g", required=True, help="Game key (see 'games')")

    # run
    sub.add_parser("run", help="Run one full scraping cycle")

    # serve
    pserve = sub.add_parser("serve", help="Run the scheduler")
    pserve.add_argument("--cron", default=None, help="Cron expression or interval")
    pserve.add_argument("--timezone", default=None, help="IANA timezone")
    pserve.add_argument("--run-on-init", action="store_true", default=None, help="Fire once at startup")
    pserve.add_argument("--job-name", default="scrape-all", help="Job name")

    return p.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides: dict[str, Any] = {}
    if args.json_logs is not None:
        overrides["JSON_LOGS"] = args.json_logs
    if args.log_level:
        overrides["LOG_LEVEL"] = args.log_level
    if args.store:
        overrides["STORE_PATH"] = args.store
    if args.games_config:
        overrides["GAMES_CONFIG_PATH"] = args.games_config
    if args.headed:
        overrides["HEADLESS"] = False
    if not overrides:
        return settings
    return settings.model_copy(update=overrides)


def _select_games(registry: ScraperRegistry, *, game_type: str | None, provider: str | None) -> set[str]:
    games = registry.games
    keys = set(games)
    if game_type:
        keys &= {g.key for g in games_by_type(games, game_type)}
    if provider:
        keys &= {g.key for g in games_by_provider(games, provider)}
    return keys


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def main(argv: list[str] | None = None) -> int:
    """Run the CLI with the given arguments."""
    try:
        return _main_impl(argv)
    except (ValueError, InvalidTrigger, NotSupported) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except NavigationFailure as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


def _main_impl(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    if args.version:
        print(f"casinoscrape version {__version__}")
        return 0

    if not args.cmd:
        print("Error: Command required. Use --help for usage info.", file=sys.stderr)
        return 2

    settings = _settings_from_args(args)
    setup_logging(
        LoggingOptions(level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS, log_file=settings.LOG_FILE)
    )

    if args.cmd == "validate":
        result = load_games(args.config)
        for w in result.warnings:
            print(f"WARN: {w}", file=sys.stderr)
        for e in result.errors:
            print(f"ERROR: {e}", file=sys.stderr)
        if not result.ok:
            return 2
        print(f"OK: {len(result.games)} game(s) in {args.config}")
        return 0

    if args.cmd == "plan":
        sched = parse_schedule(args.cron or settings.SCHEDULE, timezone=args.timezone or settings.TIMEZONE)
        now = datetime.datetime.now(datetime.timezone.utc)
        print(sched.summary())
        for t in next_run_times(sched, now, n=args.n):
            print(f"  {t.isoformat()}")
        return 0

    registry = ScraperRegistry.from_settings(settings)

    if args.cmd == "games":
        print(f"{'KEY':<20} {'TYPE':<12} {'PROVIDER':<12} {'SCRAPER'}")
        print("-" * 56)
        selected = _select_games(registry, game_type=args.game_type, provider=args.provider)
        for g in registry.supported_games():
            if g["key"] not in selected:
                continue
            print(f"{g['key']:<20} {g['type']:<12} {g['provider'] or '-':<12} {'yes' if g['has_scraper'] else 'no'}")
        return 0

    if args.cmd == "scrape":
        scraper = registry.create_scraper(args.game)
        records = asyncio.run(scraper.run())
        _print_json([r.to_dict() for r in records])
        return 0

    scheduler = TaskScheduler(registry, scrape_timeout_s=settings.SCRAPE_TIMEOUT_S)

    if args.cmd == "run":
        run = asyncio.run(scheduler.run_once())
        if run is None:
            return 1
        _print_json(run.to_dict())
        return 0 if run.status.value == "success" else 1

    if args.cmd == "serve":
        run_on_init = settings.RUN_ON_INIT if args.run_on_init is None else args.run_on_init
        return asyncio.run(
            _serve(
                scheduler,
                job_name=args.job_name,
                trigger=args.cron or settings.SCHEDULE,
                timezone=args.timezone or settings.TIMEZONE,
                run_on_init=run_on_init,
            )
        )

    print(f"Error: Unknown command {args.cmd}", file=sys.stderr)
    return 2


async def _serve(scheduler: TaskScheduler, *, job_name: str, trigger: str, timezone: str, run_on_init: bool) -> int:
    job = scheduler.create_job(job_name, trigger, timezone=timezone, run_on_init=run_on_init)
    logger.info("Serving job %s; next run at %s", job.name, job.next_run)
    try:
        await job.task
    except asyncio.CancelledError:
        pass
    finally:
        scheduler.stop_all()
        await scheduler.drain()
        logger.info("Scheduler stopped: %s", json.dumps(scheduler.stats.to_dict(), default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
