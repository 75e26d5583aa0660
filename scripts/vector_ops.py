#!/usr/bin/env python3
"""
Operations utilities - CLI tools for inspecting, searching and moving
vectors in a vectorbase database.

Run from the repository root:
    python -m scripts.vector_ops stats
    python -m scripts.vector_ops search --values 1,0 --k 5 --metric euclidean
"""

import argparse
import json
import sys
from dataclasses import asdict
from typing import List, Optional

from vectorbase.core.config import DB_PATH, SearchType, VectorDatabaseConfig, config_from_env, validate_config
from vectorbase.core.database import VectorDatabase
from vectorbase.core.errors import VectorDBError
from vectorbase.vector.types import DistanceMetric, SearchOptions, SearchResult
from vectorbase.util.logging import logger


def parse_values(text: str) -> List[float]:
    """Parse a comma separated list of floats, e.g. ``1,0,0.5``."""
    try:
        return [float(part) for part in text.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid vector values: {text!r}")


def print_results(results: List[SearchResult]) -> None:
    if not results:
        print("No matches")
        return
    for rank, result in enumerate(results, start=1):
        line = f"{rank:3d}. {result.vector.id}  score={result.score:.6f}"
        if result.distance is not None:
            line += f"  distance={result.distance:.6f}"
        print(line)


def stats_command(db: VectorDatabase, args) -> None:
    """Show database statistics."""
    stats = db.get_statistics()

    if args.json:
        print(json.dumps(asdict(stats), indent=2))
        return

    print("📊 Vector Database Statistics")
    print(f"   Database path: {stats.database_path}")
    print(f"   Search engine: {stats.search_engine_type}")
    print(f"   Total vectors: {stats.total_vectors}")
    print(f"   Unique dimensions: {stats.unique_dimensions}")
    print(f"   Average dimension: {stats.average_dimension}")


def export_json_command(db: VectorDatabase, args) -> None:
    count = db.export_to_json(args.path)
    print(f"✅ Exported {count} vectors to {args.path}")


def export_csv_command(db: VectorDatabase, args) -> None:
    count = db.export_to_csv(args.path)
    print(f"✅ Exported {count} vectors to {args.path}")


def import_json_command(db: VectorDatabase, args) -> None:
    count = db.import_from_json(args.path)
    print(f"✅ Imported {count} vectors from {args.path}")


def search_command(db: VectorDatabase, args) -> None:
    """Top-k search for an ad-hoc query vector."""
    options = SearchOptions(metric=args.metric, normalize_query=args.normalize)
    results = db.search_by_values(args.values, args.k, options)
    print(f"🔍 Top {args.k} by {DistanceMetric(args.metric).description}")
    print_results(results)


def similar_command(db: VectorDatabase, args) -> None:
    """Nearest neighbours of a stored vector."""
    options = SearchOptions(metric=args.metric)
    results = db.find_similar(args.id, args.k, options)
    print(f"🔍 Vectors similar to {args.id}")
    print_results(results)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="vectorbase Operations CLI Utilities",
        prog="python -m scripts.vector_ops"
    )
    parser.add_argument(
        "--db",
        default=DB_PATH,
        help=f"Path to the SQLite database (default: {DB_PATH})"
    )
    parser.add_argument(
        "--search-type",
        choices=[t.value for t in SearchType],
        default=None,
        help="Search index strategy (default: VECTORBASE_SEARCH_TYPE or brute_force)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    metrics = [m.value for m in DistanceMetric]

    stats_parser = subparsers.add_parser("stats", help="Show database statistics")
    stats_parser.add_argument("--json", action="store_true", help="Output statistics in JSON format")
    stats_parser.set_defaults(func=stats_command)

    export_json_parser = subparsers.add_parser("export-json", help="Export all vectors to a JSON file")
    export_json_parser.add_argument("path", help="Output file")
    export_json_parser.set_defaults(func=export_json_command)

    export_csv_parser = subparsers.add_parser("export-csv", help="Export ids and values to a CSV file")
    export_csv_parser.add_argument("path", help="Output file")
    export_csv_parser.set_defaults(func=export_csv_command)

    import_json_parser = subparsers.add_parser("import-json", help="Import vectors from a JSON export")
    import_json_parser.add_argument("path", help="JSON export to read")
    import_json_parser.set_defaults(func=import_json_command)

    search_parser = subparsers.add_parser("search", help="Search with a query vector")
    search_parser.add_argument("--values", type=parse_values, required=True, help="Comma separated components")
    search_parser.add_argument("--k", type=int, default=5, help="Number of results (default: 5)")
    search_parser.add_argument("--metric", choices=metrics, default=DistanceMetric.COSINE.value)
    search_parser.add_argument("--normalize", action="store_true", help="Normalize the query first")
    search_parser.set_defaults(func=search_command)

    similar_parser = subparsers.add_parser("similar", help="Find vectors similar to a stored one")
    similar_parser.add_argument("id", help="Id of the stored vector")
    similar_parser.add_argument("--k", type=int, default=5, help="Number of results (default: 5)")
    similar_parser.add_argument("--metric", choices=metrics, default=DistanceMetric.COSINE.value)
    similar_parser.set_defaults(func=similar_command)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point for operations utilities."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    for issue in validate_config():
        print(f"⚠️  WARNING: {issue}")

    try:
        env_config = config_from_env()
        config = VectorDatabaseConfig(
            database_path=args.db,
            expected_dimension=env_config.expected_dimension,
            search_type=args.search_type or env_config.search_type,
            default_search_options=env_config.default_search_options,
        )
        with VectorDatabase(config) as db:
            args.func(db, args)
    except VectorDBError as e:
        print(f"❌ {args.command} failed: {e}")
        logger.error(f"CLI {args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
