"""ninjadeps compile - live dependency graph and parquet export."""
from .export import export_parquet
from .graph import DepsGraph

__all__ = ["DepsGraph", "export_parquet"]
