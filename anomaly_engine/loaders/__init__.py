"""
Grade Data Loader Module.

Supplies the engine with one assignment's context and graded submissions:
- In memory (embedding callers)
- JSON snapshot files (.json)
- Excel workbooks (.xlsx)
"""

from anomaly_engine.loaders.base import AssignmentNotFoundError, GradeDataLoader, LoaderError
from anomaly_engine.loaders.excel_loader import ExcelGradeLoader
from anomaly_engine.loaders.factory import create_loader, get_supported_extensions
from anomaly_engine.loaders.json_loader import JsonSnapshotLoader
from anomaly_engine.loaders.memory import InMemoryGradeLoader

__all__ = [
    "AssignmentNotFoundError",
    "ExcelGradeLoader",
    "GradeDataLoader",
    "InMemoryGradeLoader",
    "JsonSnapshotLoader",
    "LoaderError",
    "create_loader",
    "get_supported_extensions",
]
