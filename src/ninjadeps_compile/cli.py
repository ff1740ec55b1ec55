"""ninjadeps - compile a .ninja_deps log into parquet tables."""
from __future__ import annotations

from pathlib import Path

import click

from ninjadeps_compile.export import export_parquet
from ninjadeps_compile.graph import DepsGraph
from ninjadeps_core.decoder import decode_all
from ninjadeps_core.protocol import CHECKSUM_STRICT, CHECKSUM_WARN, DEFAULT_CHECKSUM_POLICY
from ninjadeps_core.records import PathRecord


def _policy(strict: bool, warn: bool) -> str:
    if strict:
        return CHECKSUM_STRICT
    if warn:
        return CHECKSUM_WARN
    return DEFAULT_CHECKSUM_POLICY


def compile_deps(deps_path: Path, out_path: Path, checksum_policy: str = DEFAULT_CHECKSUM_POLICY) -> dict:
    """Decode a deps log and write its live graph as parquet."""
    print(f"Compiling deps log: {deps_path}")

    graph = DepsGraph.from_file(deps_path, checksum_policy=checksum_policy)
    counts = export_parquet(graph, out_path)

    stats = graph.get_stats()
    print(f"PASS: Tables written to {out_path}")
    print(f"  Paths: {stats['paths']}")
    print(f"  Deps records: {stats['deps_records']} ({stats['dead_records']} dead)")
    print(f"  Edges: {counts['edges']}")
    if graph.needs_recompaction():
        print("  Note: log is due for recompaction")
    return {**stats, **counts}


@click.command()
@click.argument("deps", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("out", type=click.Path(file_okay=False, path_type=Path))
@click.option("--strict-checksums", is_flag=True, help="Fail on path checksum mismatch")
@click.option("--warn-checksums", is_flag=True, help="Warn on path checksum mismatch")
def main(deps: Path, out: Path, strict_checksums: bool, warn_checksums: bool) -> None:
    """Compile a .ninja_deps log into paths.parquet and deps.parquet."""
    try:
        compile_deps(deps, out, checksum_policy=_policy(strict_checksums, warn_checksums))
    except Exception as e:
        # Fail closed with a single-line reason.
        print(f"FATAL: {e}")
        raise SystemExit(1)


@click.command()
@click.argument("deps", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--live", is_flag=True, help="Only print the surviving record per target")
@click.option("--strict-checksums", is_flag=True, help="Fail on path checksum mismatch")
def dump(deps: Path, live: bool, strict_checksums: bool) -> None:
    """Print the records of a .ninja_deps log."""
    policy = _policy(strict_checksums, False)
    try:
        if live:
            graph = DepsGraph.from_file(deps, checksum_policy=policy)
            for tid in sorted(graph.deps):
                mtime, ids = graph.deps[tid]
                deps_text = " ".join(str(graph.path_text(d)) for d in ids)
                click.echo(f"{graph.path_text(tid)}: mtime={mtime} deps={len(ids)} {deps_text}".rstrip())
            return

        def echo(record) -> None:
            if isinstance(record, PathRecord):
                click.echo(f"path {record.id} {record.text}")
            else:
                ids = " ".join(str(d) for d in record.dependency_ids)
                click.echo(f"deps {record.target_id} mtime={record.timestamp} {ids}".rstrip())

        decode_all(deps, echo, checksum_policy=policy)
    except Exception as e:
        click.echo(f"FATAL: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
