from .report_store import ReportStore, redact_for_export

__all__ = ["ReportStore", "redact_for_export"]
