#!/usr/bin/env python3
"""
CLI for triaging listings.

Usage:
    python -m reporting.cli import <file>... [--kind land|multi|single]
    python -m reporting.cli rank [--kind KIND] [--tab TAB] [--state ST] [--search TEXT] [--limit N]
    python -m reporting.cli tag <id> <tag> [--kind KIND]
    python -m reporting.cli export --format csv|json|pdf --output PATH [--kind KIND]
    python -m reporting.cli clear [--kind KIND]

Examples:
    # Import a CSV export and a JSON backup of land parcels
    python -m reporting.cli import parcels.csv backup.json

    # Show the shortlist, best first
    python -m reporting.cli rank --tab shortlist

    # Print a PDF of everything in Massachusetts
    python -m reporting.cli export --format pdf --state MA --output reports/ma.pdf
"""

import argparse
import logging
import sys
from pathlib import Path

from core.filters import LandFilter, MultiUnitFilter, SingleFamilyFilter, Tab
from core.finance import derive_multi_unit, derive_single_family
from core.ingestion import InvalidBatchError
from core.models import RecordKind
from core.triage import TriageSession
from feeds.region_benchmarks import RegionBenchmarkFeed
from utils.config import Config
from utils.formatting import format_currency, format_number, format_percent, format_score
from utils.storage import JsonBlobStore, storage_key_for

from .exporters import read_rows, to_csv, to_json
from .pdf_generator import ReportSuccess, ShortlistReportGenerator


logger = logging.getLogger(__name__)

KIND_CHOICES = [kind.value for kind in RecordKind]
TAB_CHOICES = [tab.value for tab in Tab]


# =============================================================================
# Session Helpers
# =============================================================================


def open_session(args, config: Config) -> TriageSession:
    """Load the stored record set for the requested kind."""
    store = JsonBlobStore(args.data_dir or config.data_dir)
    rows = store.load(storage_key_for(args.kind))
    return TriageSession.from_rows(args.kind, rows, financing=config.financing)


def save_session(session: TriageSession, args, config: Config) -> bool:
    store = JsonBlobStore(args.data_dir or config.data_dir)
    return store.save(storage_key_for(session.kind), session.to_rows())


def load_benchmarks(session: TriageSession, config: Config) -> None:
    """Populate the session's region cache for land valuation."""
    if session.kind != RecordKind.LAND:
        return
    with RegionBenchmarkFeed(timeout=config.request_timeout) as feed:
        feed.load_into(session.region_cache, config.region_stats_source)


def build_criteria(args):
    """Filter criteria for the session kind from the command line."""
    state = (args.state or "").strip().upper()
    search = args.search or ""
    kind = RecordKind.from_string(args.kind)

    if kind == RecordKind.MULTI_UNIT:
        return MultiUnitFilter(
            state=state,
            min_dscr=args.min_dscr,
            min_cap_rate=args.min_cap_rate,
            max_price_per_unit=args.max_price_per_unit,
            search=search,
        )
    if kind == RecordKind.SINGLE_FAMILY:
        return SingleFamilyFilter(
            state=state,
            min_beds=args.min_beds,
            max_price=args.max_price,
            search=search,
        )
    return LandFilter(
        state=state,
        water=args.water or "",
        min_acres=args.min_acres,
        max_price=args.max_price,
        search=search,
    )


def format_ranked_line(session: TriageSession, item) -> str:
    """One printable line for a ranked record."""
    record = item.record
    label = record.id or "(no id)"

    if session.kind == RecordKind.LAND:
        scored = item.scored
        valuation = item.valuation
        badge = valuation.badge.value if valuation and valuation.badge else "-"
        return (
            f"{item.position:>3}. {label:<40} "
            f"composite {format_score(scored.composite_score):>7}  "
            f"{format_currency(scored.price_per_acre) or '-':>10}/acre  "
            f"[{record.tag}] {badge}"
        )

    if session.kind == RecordKind.MULTI_UNIT:
        metrics = derive_multi_unit(record, session.financing)
        return (
            f"{item.position:>3}. {label:<40} "
            f"DSCR {format_number(metrics.dscr, 2):>6}  "
            f"cap {format_percent(metrics.cap_rate * 100):>6}  "
            f"{format_currency(metrics.price_per_unit) or '-':>10}/unit  "
            f"[{record.tag}]"
        )

    metrics = derive_single_family(record)
    rent_yield = metrics.rent_yield * 100 if metrics.rent_yield is not None else None
    return (
        f"{item.position:>3}. {label:<40} "
        f"yield {format_percent(rent_yield) or '-':>6}  "
        f"{format_currency(record.get('Price')) or '-':>10}  "
        f"[{record.tag}]"
    )


# =============================================================================
# Commands
# =============================================================================


def cmd_import(args, config: Config) -> int:
    """Import CSV / JSON files into the stored record set."""
    session = open_session(args, config)

    total_added = 0
    for name in args.files:
        path = Path(name)
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1
        try:
            rows = read_rows(path)
            added = session.import_rows(rows)
        except InvalidBatchError as e:
            print(f"Error: Invalid import file {path}: {e}", file=sys.stderr)
            return 1
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: Could not read {path}: {e}", file=sys.stderr)
            return 1
        print(f"Imported {len(rows)} rows from {path} ({added} new)")
        total_added += added

    if not save_session(session, args, config):
        print("Error: Could not save records", file=sys.stderr)
        return 1

    print(f"{len(session)} {session.kind.value} records stored ({total_added} new)")
    return 0


def cmd_rank(args, config: Config) -> int:
    """Print the filtered record set in ranked order."""
    session = open_session(args, config)
    load_benchmarks(session, config)

    ranked = session.ranked(build_criteria(args), args.tab)
    if args.limit is not None:
        ranked = ranked[:args.limit]

    if not ranked:
        print("No records match.")
        return 0

    for item in ranked:
        print(format_ranked_line(session, item))

    counts = session.tag_counts()
    print()
    print("  ".join(f"{tag}: {count}" for tag, count in counts.items()))
    return 0


def cmd_tag(args, config: Config) -> int:
    """Set the workflow tag of one record."""
    session = open_session(args, config)

    record = session.set_tag(args.record_id, args.tag)
    if record is None:
        print(f"Error: No {session.kind.value} record with id: {args.record_id}", file=sys.stderr)
        return 1

    if not save_session(session, args, config):
        print("Error: Could not save records", file=sys.stderr)
        return 1

    print(f"{record.id} -> {record.tag}")
    return 0


def cmd_export(args, config: Config) -> int:
    """Export the filtered, ranked record set."""
    session = open_session(args, config)
    load_benchmarks(session, config)

    ranked = session.ranked(build_criteria(args), args.tab)
    records = [item.record for item in ranked]
    output = Path(args.output)

    if args.format == "pdf":
        if session.kind != RecordKind.LAND:
            print("Error: PDF export is only available for land records", file=sys.stderr)
            return 1
        result = ShortlistReportGenerator().generate_report(ranked, output)
        if not isinstance(result, ReportSuccess):
            print(result.message)
            return 0
        print(f"Report generated: {result.path} ({result.records_included} parcels)")
        return 0

    text = to_csv(records, session.schema) if args.format == "csv" else to_json(records, session.schema)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    print(f"Exported {len(records)} records to {output}")
    return 0


def cmd_clear(args, config: Config) -> int:
    """Remove every stored record of a kind."""
    session = open_session(args, config)
    count = len(session)
    session.clear()

    if not save_session(session, args, config):
        print("Error: Could not save records", file=sys.stderr)
        return 1

    print(f"Cleared {count} {session.kind.value} records")
    return 0


# =============================================================================
# Entry Point
# =============================================================================


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tab", choices=TAB_CHOICES, default=Tab.ALL.value)
    parser.add_argument("--state", help="Two-letter state code")
    parser.add_argument("--search", help="Free-text search")
    parser.add_argument("--water", choices=["adjacent", "near"], help="Land: water proximity")
    parser.add_argument("--min-acres", type=float, help="Land: minimum acres")
    parser.add_argument("--max-price", type=float, help="Land / single: maximum price")
    parser.add_argument("--min-dscr", type=float, help="Multi: minimum DSCR")
    parser.add_argument("--min-cap-rate", type=float, help="Multi: minimum cap rate (fraction)")
    parser.add_argument("--max-price-per-unit", type=float, help="Multi: maximum price per unit")
    parser.add_argument("--min-beds", type=float, help="Single: minimum bedrooms")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parcel Scout - listing triage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m reporting.cli import parcels.csv
    python -m reporting.cli rank --tab shortlist --limit 10
    python -m reporting.cli export --format pdf --output reports/shortlist.pdf

Storage:
    Records are stored under $PARCEL_SCOUT_DATA_DIR (default ./data)
        """,
    )
    parser.add_argument("--data-dir", help="Override the data directory")

    # Shared --kind option
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--kind", choices=KIND_CHOICES, default=RecordKind.LAND.value)

    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser(
        "import",
        parents=[common],
        help="Import CSV or JSON files",
    )
    import_parser.add_argument("files", nargs="+", help="CSV or JSON files")
    import_parser.set_defaults(func=cmd_import)

    rank_parser = subparsers.add_parser(
        "rank",
        parents=[common],
        help="Show records in ranked order",
    )
    _add_filter_arguments(rank_parser)
    rank_parser.add_argument("--limit", type=int, help="Show at most N records")
    rank_parser.set_defaults(func=cmd_rank)

    tag_parser = subparsers.add_parser(
        "tag",
        parents=[common],
        help="Set a record's workflow tag",
    )
    tag_parser.add_argument("record_id", help="Record id (e.g. ma|berkshire|monterey|12-4)")
    tag_parser.add_argument("tag", help="Tag (inbox, shortlist, visit, offer, watch, skip, ...)")
    tag_parser.set_defaults(func=cmd_tag)

    export_parser = subparsers.add_parser(
        "export",
        parents=[common],
        help="Export the filtered, ranked records",
    )
    _add_filter_arguments(export_parser)
    export_parser.add_argument("--format", choices=["csv", "json", "pdf"], default="csv")
    export_parser.add_argument("--output", required=True, help="Output file path")
    export_parser.set_defaults(func=cmd_export)

    clear_parser = subparsers.add_parser(
        "clear",
        parents=[common],
        help="Remove every stored record of a kind",
    )
    clear_parser.set_defaults(func=cmd_clear)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.load()
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
