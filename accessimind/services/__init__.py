"""Task services used by the browser shell."""

from accessimind.services.page_assistant import HistoryEntry, PageAssistant, TaskResult

__all__ = ["HistoryEntry", "PageAssistant", "TaskResult"]
