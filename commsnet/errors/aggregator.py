"""
errors/aggregator.py - Aggregate and report problems

Collects the problems reported while building trees so that callers
can attribute them to individual records.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List
from datetime import datetime
import uuid

from .taxonomy import NetworkError, ErrorCategory, ErrorSeverity


@dataclass
class ErrorReport:
    """Aggregated problem report."""

    report_id: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)

    # Counts
    total_errors: int = 0
    by_severity: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)

    # URNs of records with problems
    urns: List[str] = field(default_factory=list)

    summary: str = ""

    all_errors: List[NetworkError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "total_errors": self.total_errors,
            "by_severity": self.by_severity,
            "by_category": self.by_category,
            "urns": self.urns,
            "summary": self.summary,
        }


class ErrorAggregator:
    """
    Aggregates problems from multiple builders.
    """

    def __init__(self):
        self._errors: List[NetworkError] = []
        self._by_source: Dict[str, List[NetworkError]] = {}

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self):
        return iter(self._errors)

    @property
    def errors(self) -> List[NetworkError]:
        """All problems, in the order reported."""
        return list(self._errors)

    def add(self, error: NetworkError) -> None:
        """Add a problem."""
        self._errors.append(error)
        self._by_source.setdefault(error.source, []).append(error)

    def add_all(self, errors: List[NetworkError]) -> None:
        """Add multiple problems."""
        for error in errors:
            self.add(error)

    def get_by_severity(self, severity: ErrorSeverity) -> List[NetworkError]:
        """Get problems by severity."""
        return [e for e in self._errors if e.severity == severity]

    def get_by_category(self, category: ErrorCategory) -> List[NetworkError]:
        """Get problems by category."""
        return [e for e in self._errors if e.category == category]

    def get_by_source(self, source: str) -> List[NetworkError]:
        """Get problems by source."""
        return self._by_source.get(source, [])

    def get_by_urn(self, urn: str) -> List[NetworkError]:
        """Get problems attributed to record 'urn'."""
        return [e for e in self._errors if e.urn == urn]

    def has_critical(self) -> bool:
        """Check if any critical problems."""
        return any(e.severity == ErrorSeverity.CRITICAL for e in self._errors)

    def has_errors(self) -> bool:
        """Check if any errors (not just warnings)."""
        return any(
            e.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]
            for e in self._errors
        )

    def generate_report(self) -> ErrorReport:
        """Generate aggregated report."""
        report = ErrorReport(
            report_id=str(uuid.uuid4())[:8],
            total_errors=len(self._errors),
        )

        for severity in ErrorSeverity:
            count = sum(1 for e in self._errors if e.severity == severity)
            if count > 0:
                report.by_severity[severity.value] = count

        for category in ErrorCategory:
            count = sum(1 for e in self._errors if e.category == category)
            if count > 0:
                report.by_category[category.value] = count

        report.urns = sorted({e.urn for e in self._errors if e.urn})

        if report.by_severity.get("critical", 0) > 0:
            report.summary = f"{report.by_severity['critical']} critical problem(s) found"
        elif report.by_severity.get("error", 0) > 0:
            report.summary = f"{report.by_severity['error']} error(s) found"
        elif report.by_severity.get("warning", 0) > 0:
            report.summary = f"{report.by_severity['warning']} warning(s) found"
        else:
            report.summary = "No significant issues"

        report.all_errors = self._errors.copy()

        return report

    def clear(self) -> None:
        """Clear all problems."""
        self._errors.clear()
        self._by_source.clear()
