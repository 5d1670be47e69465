"""
Command line entry point for the dml2graph migration.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from dml2graph.config import load_migration_settings
from dml2graph.migration.orchestrator import MigrationState
from dml2graph.migration.pipeline import MigrationPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Migrate a relational object store described by DML files into Neo4j."
    )
    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="One or more DML files, or directories searched recursively for *.dml files.",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="Graph writes per committed transaction. Overrides DML2GRAPH_BATCH_SIZE.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser


def resolve_inputs(inputs: Iterable[Path]) -> list[Path]:
    resolved: list[Path] = []

    for input_path in inputs:
        if input_path.is_dir():
            resolved.extend(path for path in input_path.rglob("*.dml") if path.is_file())
            continue

        if not input_path.exists():
            raise FileNotFoundError(f"{input_path} does not exist")
        resolved.append(input_path)

    if not resolved:
        raise RuntimeError("No DML files found")

    # Deduplicate; the model is assembled in path order
    return sorted(set(resolved), key=lambda path: path.as_posix())


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    dml_paths = resolve_inputs(args.paths)

    settings = load_migration_settings()
    if args.batch_size is not None:
        if args.batch_size <= 0:
            parser.error("--batch-size must be positive")
        settings = replace(settings, batch_size=args.batch_size)

    report = MigrationPipeline(migration_settings=settings).run(dml_paths)

    if not report.succeeded:
        print(f"Migration failed after reaching {report.state.value}: {report.error}")
        return 1

    print(
        f"Migration complete: {len(report.counts_for(MigrationState.HIERARCHY_LOADED))} classes, "
        f"{report.objects_loaded} objects, "
        f"{report.edges_created} relation edges."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
