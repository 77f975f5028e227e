from .journal_extraction import JournalExtractionRequest, JournalExtractionWorkflow

__all__ = ["JournalExtractionRequest", "JournalExtractionWorkflow"]
