"""
Report Output Module.

Renders anomaly reports as JSON, Markdown or CSV.
"""

from anomaly_engine.output.report_generator import ReportFormat, ReportGenerator

__all__ = [
    "ReportFormat",
    "ReportGenerator",
]
