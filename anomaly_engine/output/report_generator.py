"""
Report generator for anomaly reports.

Renders a report as JSON (the wire contract), Markdown for humans,
or CSV of the regrade risk list for spreadsheets.
"""

import json
from enum import Enum
from pathlib import Path

import pandas as pd

from anomaly_engine.models import AnomalyReport

RISK_COLUMNS = [
    "submission_id",
    "student_identifier",
    "score",
    "risk_score",
    "risk_factors",
    "grader_id",
    "grader_email",
]


class ReportFormat(str, Enum):
    """Output format for rendered reports."""

    JSON = "json"
    MARKDOWN = "markdown"
    CSV = "csv"


_SUFFIX_FORMATS = {
    ".json": ReportFormat.JSON,
    ".md": ReportFormat.MARKDOWN,
    ".markdown": ReportFormat.MARKDOWN,
    ".csv": ReportFormat.CSV,
}


class ReportGenerator:
    """Renders anomaly reports to text and files."""

    def generate(self, report: AnomalyReport, format: ReportFormat = ReportFormat.JSON) -> str:
        """
        Render a report.

        Args:
            report: The report to render.
            format: Output format.

        Returns:
            The rendered text.
        """
        if format == ReportFormat.MARKDOWN:
            return self._to_markdown(report)
        if format == ReportFormat.CSV:
            return self._to_csv(report)
        return self._to_json(report)

    def save(
        self,
        report: AnomalyReport,
        output_path: Path,
        format: ReportFormat | None = None,
    ) -> Path:
        """
        Render a report into a file.

        The format is inferred from the file suffix when not given,
        falling back to JSON.

        Returns:
            The path written.
        """
        fmt = format or _SUFFIX_FORMATS.get(output_path.suffix.lower(), ReportFormat.JSON)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate(report, fmt), encoding="utf-8")
        return output_path

    def _to_json(self, report: AnomalyReport) -> str:
        return json.dumps(report.model_dump(mode="json"), indent=2)

    def _to_csv(self, report: AnomalyReport) -> str:
        rows = [
            {**risk.model_dump(mode="json"), "risk_factors": ";".join(risk.risk_factors)}
            for risk in report.regrade_risks
        ]
        return pd.DataFrame(rows, columns=RISK_COLUMNS).to_csv(index=False)

    def _to_markdown(self, report: AnomalyReport) -> str:
        summary = report.summary
        lines = [
            f"# Anomaly Report: Assignment {report.assignment_id}",
            "",
            f"*Report {report.report_id}, generated {report.generated_at.isoformat()}, "
            f"status: {report.status.value}*",
            "",
            "## Summary",
            "",
            f"- **Total grades:** {summary.total_grades}",
            f"- **Average score:** {summary.average_score:.2f}",
            f"- **Standard deviation:** {summary.standard_deviation:.2f}",
            f"- **TA severity issues:** {len(report.ta_severity_issues)}",
            f"- **Outlier grades:** {len(report.outlier_grades)}",
            f"- **Criterion issues:** {len(report.criterion_issues)}",
            f"- **Regrade risks:** {len(report.regrade_risks)}",
            "",
            "## TA Severity",
            "",
        ]

        if report.ta_severity_issues:
            lines.append("| Grader | Email | Average | Grades | Deviation | Severity |")
            lines.append("|--------|-------|---------|--------|-----------|----------|")
            for ta in report.ta_severity_issues:
                lines.append(
                    f"| {ta.grader_id} | {ta.grader_email} | {ta.average_score:.2f} "
                    f"| {ta.grades_count} | {ta.deviation:+.2f} | {ta.severity.value} |"
                )
        else:
            lines.append("No grader severity issues detected.")

        lines.extend(["", "## Outlier Grades", ""])
        if report.outlier_grades:
            lines.append("| Submission | Student | Score | Z-Score | Grader |")
            lines.append("|------------|---------|-------|---------|--------|")
            for o in report.outlier_grades:
                lines.append(
                    f"| {o.submission_id} | {o.student_identifier} | {o.score:g} "
                    f"| {o.z_score:+.2f} | {o.grader_id} |"
                )
        else:
            lines.append("No outlier grades detected.")

        lines.extend(["", "## Criterion Issues", ""])
        if report.criterion_issues:
            lines.append("| Criterion | Average | Std-Dev | CV | Inconsistent Submissions |")
            lines.append("|-----------|---------|---------|----|--------------------------|")
            for c in report.criterion_issues:
                ids = ", ".join(str(i) for i in c.inconsistent_submission_ids) or "-"
                lines.append(
                    f"| {c.criterion_name} | {c.average_score:.2f} | {c.standard_deviation:.2f} "
                    f"| {c.coefficient_of_variation:.2f} | {ids} |"
                )
        else:
            lines.append("No inconsistent criteria detected.")

        lines.extend(["", "## Regrade Risks", ""])
        if report.regrade_risks:
            lines.append("| Submission | Student | Score | Risk | Factors | Grader |")
            lines.append("|------------|---------|-------|------|---------|--------|")
            for r in report.regrade_risks:
                lines.append(
                    f"| {r.submission_id} | {r.student_identifier} | {r.score:g} "
                    f"| {r.risk_score} | {', '.join(r.risk_factors)} | {r.grader_id} |"
                )
        else:
            lines.append("No submissions flagged for regrade.")

        lines.append("")
        return "\n".join(lines)
