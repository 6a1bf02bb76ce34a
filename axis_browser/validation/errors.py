from __future__ import annotations

from dataclasses import dataclass

from axis_browser.core.exceptions import AxisBrowserError


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str


class ValidationError(AxisBrowserError):
    """Persisted state failed validation; ``issues`` lists every problem found."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("\n".join(f"{i.code}: {i.message}" for i in issues))
