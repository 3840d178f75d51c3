"""CLI entry point for the tournament finder ingestion utilities."""

from __future__ import annotations
import argparse
import json

from config import settings
from config.federations import load_catalog
from core.logging_setup import configure_logging
from db.geo_cache import GeoCacheStore
from services.pipeline import IngestionPipeline


def _make_pipeline(store: GeoCacheStore) -> IngestionPipeline:
    return IngestionPipeline(store)


def _open_store(args: argparse.Namespace) -> GeoCacheStore:
    memory = settings.CACHE_MEMORY if args.memory is None else args.memory
    return GeoCacheStore.open(args.cache, memory=memory)


def _pass_args(args: argparse.Namespace) -> dict:
    return {
        "date_from": args.date_from or "",
        "date_to": args.date_to or "",
        "comp_type": args.comp_type or "",
        "source_ids": args.sources,
    }


def cmd_fetch(args: argparse.Namespace, store: GeoCacheStore) -> None:
    tournaments = _make_pipeline(store).fetch_and_geocode(**_pass_args(args))
    print(json.dumps([t.to_dict() for t in tournaments], indent=2, ensure_ascii=False))


def cmd_warmup(args: argparse.Namespace, store: GeoCacheStore) -> None:
    count = _make_pipeline(store).warmup(**_pass_args(args))
    print(json.dumps({"tournaments": count}, indent=2))


def cmd_cache_stats(args: argparse.Namespace, store: GeoCacheStore) -> None:
    stats = _make_pipeline(store).get_cache_statistics()
    print(json.dumps(stats.to_dict(), indent=2))


def cmd_cleanup_cache(args: argparse.Namespace, store: GeoCacheStore) -> None:
    cleaned = _make_pipeline(store).cleanup_old_failed_entries()
    print(json.dumps({"cleaned": cleaned}, indent=2))


def cmd_sources(args: argparse.Namespace) -> None:
    rows = [
        {"id": s.id, "name": s.name, "dialect": s.dialect.value, "region": s.region, "url": s.url}
        for s in load_catalog().values()
    ]
    print(json.dumps(rows, indent=2, ensure_ascii=False))


def _add_pass_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--from", dest="date_from", help="Start date DD.MM.YYYY (default today)")
    parser.add_argument("--to", dest="date_to", help="End date DD.MM.YYYY (default today + 14 days)")
    parser.add_argument("--comp-type", help="Competition type filter, e.g. Herren+Einzel")
    parser.add_argument("--sources", help="Comma separated source ids (default all)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tournament-finder")
    p.add_argument("--cache", default=settings.CACHE_PATH, help="Geocoordinate cache file")
    mem = p.add_mutually_exclusive_group()
    mem.add_argument("--memory", dest="memory", action="store_true", default=None, help="Mirror cache in memory")
    mem.add_argument("--no-memory", dest="memory", action="store_false", help="Read cache from disk only")
    p.set_defaults(memory=None)
    p.add_argument("--log-level", default=settings.LOG_LEVEL)
    p.add_argument("--log-file", default=settings.LOG_FILE)
    sub = p.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Fetch and geocode tournaments, print JSON")
    _add_pass_options(fetch)
    fetch.set_defaults(func=cmd_fetch)

    warmup = sub.add_parser("warmup", help="Run a pass to fill the geocoordinate cache")
    _add_pass_options(warmup)
    warmup.set_defaults(func=cmd_warmup)

    stats = sub.add_parser("cache-stats", help="Print cache statistics")
    stats.set_defaults(func=cmd_cache_stats)

    cleanup = sub.add_parser("cleanup-cache", help="Remove old permanently failed cache entries")
    cleanup.set_defaults(func=cmd_cleanup_cache)

    sources = sub.add_parser("sources", help="List the federation catalog")
    sources.set_defaults(func=cmd_sources, needs_store=False)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_file)
    if not getattr(args, "needs_store", True):
        args.func(args)
        return 0
    store = _open_store(args)
    try:
        args.func(args, store)
    finally:
        store.close()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
