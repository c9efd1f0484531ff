"""Polyload CLI entry points.

This module exposes commands for loading, querying and inspecting datasources.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from typing import Any, Sequence

import networkx as nx

from core.config import PolyloadConfig
from core.logging_config import configure_logging
from core.schema import DatasourceSchema
from core.schema_loader import load_datasource_schema
from core.types import DatasourceData, DocumentPayload, LoadProgress
from store.adapter_contract import QueryError
from store.datasource_sdk import DatasourceSession
from store.sqlite_adapter import SqliteAdapter
from store.sqlite_schema import build_sqlite_schema


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="polyload", description="Polyload datasource CLI")
    parser.add_argument("--source", help="Override the datasource file path or URL")
    parser.add_argument(
        "--progress", action="store_true", help="Print load progress to standard output"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    load_parser = subparsers.add_parser("load", help="Load a datasource and summarize its views")
    load_parser.add_argument("schema", help="Path to the YAML datasource schema")
    query_parser = subparsers.add_parser("query", help="Load a datasource into SQLite and query it")
    query_parser.add_argument("schema", help="Path to the YAML datasource schema")
    query_parser.add_argument("sql", help="SQL query to run")
    ddl_parser = subparsers.add_parser("ddl", help="Print the SQLite DDL of the relational view")
    ddl_parser.add_argument("schema", help="Path to the YAML datasource schema")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Polyload CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    config = PolyloadConfig.from_env()
    configure_logging(config.log_level)
    schema = load_datasource_schema(args.schema)
    if args.command == "load":
        return _run_load_command(schema, config, args)
    if args.command == "query":
        return _run_query_command(schema, config, args)
    if args.command == "ddl":
        return _run_ddl_command(schema)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_load_command(
    schema: DatasourceSchema,
    config: PolyloadConfig,
    args: argparse.Namespace,
) -> int:
    """Handle load command.

    Args:
        schema: Loaded datasource schema.
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    session = DatasourceSession(config=config)
    data = _load(session, schema, args)
    for line in summarize_views(data):
        print(line)
    return 0


def _run_query_command(
    schema: DatasourceSchema,
    config: PolyloadConfig,
    args: argparse.Namespace,
) -> int:
    """Handle query command.

    Args:
        schema: Loaded datasource schema.
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when the query fails.
    """
    adapter = SqliteAdapter()
    session = DatasourceSession([adapter], config)
    try:
        _load(session, schema, args)
        outcome = session.query(adapter.name, args.sql)
    finally:
        adapter.close()
    if isinstance(outcome, QueryError):
        print(f"error\t{outcome.message}")
        return 1
    print("\t".join(outcome.columns))
    for row in outcome.rows:
        print("\t".join(_format_cell(row[column]) for column in outcome.columns))
    return 0


def _run_ddl_command(schema: DatasourceSchema) -> int:
    """Handle ddl command."""
    for statement in build_sqlite_schema(schema).statements:
        print(statement)
    return 0


def summarize_views(data: DatasourceData) -> list[str]:
    """Render one ``kind<TAB>view<TAB>size`` line per converted kind."""
    lines = [f"{key}\trelational\t{len(rows)}" for key, rows in data.relational.items()]
    for key, value in data.multimodel.items():
        lines.append(f"{key}\tmultimodel\t{_describe_size(value)}")
    return lines


def _load(
    session: DatasourceSession,
    schema: DatasourceSchema,
    args: argparse.Namespace,
) -> DatasourceData:
    observer = _print_progress if args.progress else None
    return session.load(schema, observer=observer, source_uri=args.source)


def _print_progress(progress: LoadProgress) -> None:
    print(f"progress\t{progress.phase.value}\t{progress.fraction:.2f}")


def _describe_size(value: Any) -> str:
    if isinstance(value, DocumentPayload):
        value = value.value
    if isinstance(value, nx.MultiDiGraph):
        return f"{value.number_of_nodes()} nodes, {value.number_of_edges()} edges"
    return str(len(value))


def _format_cell(value: object) -> str:
    return "" if value is None else str(value)
