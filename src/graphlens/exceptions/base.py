"""Root of the graphlens error hierarchy."""

from typing import Dict, Optional


class GraphLensError(Exception):
    """Base exception for all graphlens errors.

    ``details`` carries string context (ids, paths, reasons) that is
    appended to the message when the error is printed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"
