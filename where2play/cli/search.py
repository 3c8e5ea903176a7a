"""Command-line access to the Where2Play searches.

Usage::

    python -m where2play.cli city Nashville
    python -m where2play.cli artist "Jason Isbell" --limit 3
    python -m where2play.cli recommend rock SW --popularity small
    python -m where2play.cli similar --genre shoegaze
    python -m where2play.cli similar --artist Slowdive
    python -m where2play.cli regions

Builds the same providers and services as the web app, runs one query,
prints a text table (or JSON with ``--json``) and exits with status 0 on
success, 1 on an upstream error and 2 on a configuration error.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import structlog

from where2play.config.regions import REGION_NAMES, REGIONS, BandPopularity
from where2play.utils.errors import ConfigurationError

_EXIT_OK = 0
_EXIT_UPSTREAM = 1
_EXIT_CONFIG = 2


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _format_events(events: list[Any]) -> str:
    if not events:
        return "No events found."
    lines = []
    for ev in events:
        when = ev.event_date.isoformat() if ev.event_date else "????-??-??"
        extra = ", ".join(x for x in (ev.genre, ev.country, ev.popularity) if x)
        suffix = f"  [{extra}]" if extra else ""
        lines.append(f"{when}  {ev.artist_name} @ {ev.venue_name}, {ev.city_name}{suffix}")
    return "\n".join(lines)


def _format_cities(cities: list[Any]) -> str:
    if not cities:
        return "No matching cities."
    return "\n".join(f"{c.fit_score:>3}  {c.city:<28} {c.reason}" for c in cities)


def _format_artists(artists: list[Any]) -> str:
    if not artists:
        return "No artists found."
    lines = []
    for a in artists:
        genres = ", ".join(a.genres[:3]) or "-"
        lines.append(f"{a.name:<32} {a.country or '--':<3} {genres}")
    return "\n".join(lines)


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # sys.stderr is looked up per call, not captured once.
    return structlog.PrintLogger(file=sys.stderr)


def _quiet_logging() -> None:
    """Send structlog output to stderr at WARNING and above.

    Must run after ``where2play.main`` is imported (it configures logging
    for the web app) so stdout carries only the results.  Loggers are not
    cached, so each write goes to the current ``sys.stderr``.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
    logging.getLogger().setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace) -> int:
    if args.command == "regions":
        rows = {code: sorted(states) for code, states in REGIONS.items()}
        if args.json_output:
            _print_json(rows)
        else:
            for code, states in rows.items():
                print(f"{code:<3} {REGION_NAMES[code]:<10} {' '.join(states)}")
        return _EXIT_OK

    from where2play.main import _build_all, config, settings

    if args.quiet or args.json_output:
        _quiet_logging()

    components = _build_all(settings, config)
    aggregator = components["aggregator"]
    engine = components["recommendation_engine"]
    try:
        if args.command == "city":
            result = await aggregator.search_by_city(args.city)
            payload, text = [e.model_dump() for e in result.items], _format_events(result.items)
        elif args.command == "artist":
            result = await aggregator.search_by_artist(args.artist, args.limit)
            payload, text = [e.model_dump() for e in result.items], _format_events(result.items)
        elif args.command == "recommend":
            result = await engine.recommend_cities(
                args.genre, args.region, BandPopularity.parse(args.popularity)
            )
            payload, text = [c.model_dump() for c in result.items], _format_cities(result.items)
        elif args.artist:
            similar = await engine.similar_to_artist(args.artist, args.limit)
            if similar.error and not similar.genres:
                print(f"error: {similar.error}", file=sys.stderr)
                return _EXIT_UPSTREAM
            payload = {
                "artist": similar.artist,
                "genres": similar.genres,
                "artists": [a.model_dump() for a in similar.artists],
            }
            text = f"Genres: {', '.join(similar.genres) or '-'}\n{_format_artists(similar.artists)}"
            if args.json_output:
                _print_json(payload)
            else:
                print(text)
            return _EXIT_OK
        else:
            result = await engine.find_similar_artists(args.genre, args.limit)
            payload, text = [a.model_dump() for a in result.items], _format_artists(result.items)
    except ConfigurationError as exc:
        print(f"configuration error: {exc.message}", file=sys.stderr)
        return _EXIT_CONFIG
    finally:
        await components["http_client"].aclose()

    if not result.ok:
        print(f"error: {result.error}", file=sys.stderr)
        return _EXIT_UPSTREAM
    if args.json_output:
        _print_json(payload)
    else:
        print(text)
    return _EXIT_OK


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m where2play.cli",
        description="Search concerts, rank touring cities and find similar artists.",
    )
    parser.add_argument("--json", dest="json_output", action="store_true", help="Print JSON.")
    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Only log warnings (to stderr)."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    city = sub.add_parser("city", help="Events recently played in a city.")
    city.add_argument("city")

    artist = sub.add_parser("artist", help="Recent shows of artists matching a name.")
    artist.add_argument("artist")
    artist.add_argument("--limit", type=int, default=5, help="Artists to include (default 5).")

    recommend = sub.add_parser("recommend", help="Rank touring cities for a genre and region.")
    recommend.add_argument("genre")
    recommend.add_argument("region", help=f"One of: {', '.join(REGIONS)}")
    recommend.add_argument(
        "--popularity",
        default=BandPopularity.MEDIUM.value,
        choices=[p.value for p in BandPopularity],
    )

    similar = sub.add_parser("similar", help="Artists by genre, or similar to an artist.")
    target = similar.add_mutually_exclusive_group(required=True)
    target.add_argument("--genre")
    target.add_argument("--artist")
    similar.add_argument("--limit", type=int, default=10)

    sub.add_parser("regions", help="List region codes and their states.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Exits with the command's status code."""
    args = _build_parser().parse_args(argv)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
