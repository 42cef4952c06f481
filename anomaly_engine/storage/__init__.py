"""
Report Storage Module.

Persists anomaly reports and tracks their review status.
"""

from anomaly_engine.storage.report_store import ReportNotFoundError, ReportStore, ReportStoreError

__all__ = [
    "ReportNotFoundError",
    "ReportStore",
    "ReportStoreError",
]
