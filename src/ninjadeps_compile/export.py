from __future__ import annotations

from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from ninjadeps_compile.graph import DepsGraph

PATHS_SCHEMA = pa.schema(
    [
        ("path_id", pa.int64()),
        ("path", pa.string()),
    ]
)

DEPS_SCHEMA = pa.schema(
    [
        ("target_id", pa.int64()),
        ("target", pa.string()),
        ("mtime", pa.int64()),
        ("position", pa.int64()),
        ("dependency_id", pa.int64()),
        ("dependency", pa.string()),
    ]
)


def _write_parquet(rows: list[dict], schema: pa.Schema, path: Path, sort_keys: list[str]) -> bool:
    if not rows:
        return False
    df = pd.DataFrame(rows, columns=schema.names)
    for field in schema:
        if pa.types.is_integer(field.type):
            df[field.name] = df[field.name].astype("Int64")
    df = df.sort_values(sort_keys)
    table = pa.Table.from_pandas(df, schema=schema, preserve_index=False)
    pq.write_table(table, path)
    return True


def export_parquet(graph: DepsGraph, out_path: Path) -> dict[str, int]:
    """Write paths.parquet and deps.parquet for the live graph.

    One deps row per (target, dependency) edge. Targets with an empty
    dependency list get a single row with null dependency columns so their
    mtime is not lost.
    """
    out_path = Path(out_path)
    out_path.mkdir(parents=True, exist_ok=True)

    paths = [{"path_id": pid, "path": text} for pid, text in graph.paths.items()]

    edges: list[dict] = []
    for tid, (mtime, ids) in graph.deps.items():
        base = {"target_id": tid, "target": graph.path_text(tid), "mtime": mtime}
        if not ids:
            edges.append({**base, "position": None, "dependency_id": None, "dependency": None})
            continue
        for pos, did in enumerate(ids):
            edges.append({**base, "position": pos, "dependency_id": did, "dependency": graph.path_text(did)})

    _write_parquet(paths, PATHS_SCHEMA, out_path / "paths.parquet", ["path_id"])
    _write_parquet(edges, DEPS_SCHEMA, out_path / "deps.parquet", ["target_id", "position"])

    return {"paths": len(paths), "edges": len(edges), "targets": len(graph.deps)}
