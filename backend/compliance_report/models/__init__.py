from compliance_report.models.saved_report import SavedReport

__all__ = [
    "SavedReport",
]
