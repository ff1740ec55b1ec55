"""Query compiled deps tables - which targets depend on a given path."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb


def dependents(tables: Path, dependency: str) -> list[tuple[str, int | None]]:
    con = duckdb.connect(":memory:")
    con.execute(f"CREATE VIEW deps AS SELECT * FROM '{tables}/deps.parquet'")

    sql = """
    SELECT target, mtime
    FROM deps
    WHERE dependency = ?
    ORDER BY target
    """
    return con.execute(sql, [dependency]).fetchall()


def main() -> None:
    if len(sys.argv) < 3:
        print("Usage: python query.py <tables_path> <dependency>")
        print("Example: python query.py out/ include/header_000.h")
        sys.exit(1)

    tables = Path(sys.argv[1])
    dependency = sys.argv[2]

    print(f"--- Dependents of: {dependency} ---\n")

    rows = dependents(tables, dependency)
    if not rows:
        print("No target depends on this path.")
    else:
        for target, mtime in rows:
            print(f"TARGET: {target}")
            print(f"  mtime: {mtime if mtime is not None else 'missing'}")


if __name__ == "__main__":
    main()
