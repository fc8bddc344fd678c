"""DAR report generation, finalization and translation."""

from .service import ReportService

__all__ = ["ReportService"]
