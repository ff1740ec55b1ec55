from __future__ import annotations

from collections import defaultdict
from pathlib import Path

from ninjadeps_core.decoder import decode_all
from ninjadeps_core.protocol import RECOMPACT_DEAD_FRACTION, RECOMPACT_MIN_RECORDS
from ninjadeps_core.records import DependencyRecord, PathRecord


class DepsGraph:
    """Live view of a deps log: later records for a target win.

    Paths are kept by id; each target keeps only its last dependency record.
    Ids pointing at unknown paths are kept as-is.
    """

    def __init__(self):
        self.paths: dict[int, str] = {}
        self._ids: dict[str, int] = {}
        self.deps: dict[int, tuple[int | None, list[int]]] = {}
        self.stats = {
            "paths": 0,
            "deps_records": 0,
            "dead_records": 0,
        }

    @classmethod
    def from_file(cls, deps_path: Path, **options) -> "DepsGraph":
        graph = cls()
        decode_all(deps_path, graph.add, **options)
        return graph

    def add(self, record) -> None:
        if isinstance(record, PathRecord):
            self.paths[record.id] = record.text
            self._ids[record.text] = record.id
            self.stats["paths"] += 1
        elif isinstance(record, DependencyRecord):
            if record.target_id in self.deps:
                self.stats["dead_records"] += 1
            # Views die with the mapping; keep a copy
            self.deps[record.target_id] = (record.timestamp, record.dependency_ids.to_list())
            self.stats["deps_records"] += 1
        else:
            raise TypeError(f"not a deps record: {record!r}")

    def get_stats(self) -> dict:
        return dict(self.stats)

    def path_text(self, path_id: int) -> str | None:
        return self.paths.get(path_id)

    def path_id(self, text: str) -> int | None:
        return self._ids.get(text)

    def dead_ratio(self) -> float:
        total = self.stats["paths"] + self.stats["deps_records"]
        if not total:
            return 0.0
        return self.stats["dead_records"] / total

    def needs_recompaction(self) -> bool:
        """True when a writer would rewrite this log from scratch."""
        total = self.stats["paths"] + self.stats["deps_records"]
        return total > RECOMPACT_MIN_RECORDS and self.stats["dead_records"] > total * RECOMPACT_DEAD_FRACTION

    def mtime(self, target: str) -> int | None:
        tid = self.path_id(target)
        if tid is None or tid not in self.deps:
            return None
        return self.deps[tid][0]

    def dependencies_of(self, target: str) -> list[str | None]:
        tid = self.path_id(target)
        if tid is None or tid not in self.deps:
            return []
        return [self.paths.get(d) for d in self.deps[tid][1]]

    def dependents_of(self, dependency: str) -> list[str | None]:
        did = self.path_id(dependency)
        if did is None:
            return []
        reverse: dict[int, list[int]] = defaultdict(list)
        for tid, (_, ids) in self.deps.items():
            for d in ids:
                reverse[d].append(tid)
        return [self.paths.get(t) for t in sorted(reverse.get(did, []))]
