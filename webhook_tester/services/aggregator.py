# webhook_tester/services/aggregator.py
"""
Result aggregation for batch runs.
Collects task outcomes in completion order, keeps pass/fail counters and
groups failures by a normalized error signature.
"""

import re
from typing import Dict, List, Optional

from webhook_tester.models.models import BatchSummary, ErrorGroup, TaskOutcome

MAX_SIGNATURE_LENGTH = 100

_UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.I)
_OBJECT_ID_RE = re.compile(r"[0-9a-f]{24}", re.I)
_TIMESTAMP_RE = re.compile(r"\d{13,}")


def normalize_error(message: Optional[str]) -> str:
    """
    Reduce an error message to a signature shared by structurally identical failures.

    Identifiers become `[ID]`, long digit runs become `[TIMESTAMP]` and the
    result is truncated to 100 characters.
    """
    if not message:
        return "Unknown error"
    normalized = _UUID_RE.sub("[ID]", message)
    normalized = _OBJECT_ID_RE.sub("[ID]", normalized)
    normalized = _TIMESTAMP_RE.sub("[TIMESTAMP]", normalized)
    if len(normalized) > MAX_SIGNATURE_LENGTH:
        normalized = normalized[:MAX_SIGNATURE_LENGTH] + "..."
    return normalized


def group_failures(outcomes: List[TaskOutcome]) -> List[ErrorGroup]:
    """
    Group failed outcomes by normalized error, largest groups first.

    Groups with the same size keep the order in which their first failure arrived.
    """
    groups: Dict[str, List[TaskOutcome]] = {}
    for outcome in outcomes:
        if outcome.success:
            continue
        groups.setdefault(normalize_error(outcome.error), []).append(outcome)

    ordered = sorted(groups.items(), key=lambda item: len(item[1]), reverse=True)
    return [
        ErrorGroup(signature=signature, count=len(members), outcomes=members)
        for signature, members in ordered
    ]


class ResultAggregator:
    """Accumulates outcomes of one batch, in the order tasks complete."""

    def __init__(self, total: int = 0):
        self.total = total
        self._outcomes: List[TaskOutcome] = []
        self.passed = 0
        self.failed = 0

    def add(self, outcome: TaskOutcome) -> None:
        self._outcomes.append(outcome)
        if outcome.success:
            self.passed += 1
        else:
            self.failed += 1

    @property
    def completed(self) -> int:
        return len(self._outcomes)

    @property
    def outcomes(self) -> List[TaskOutcome]:
        return list(self._outcomes)

    def group_failures(self) -> List[ErrorGroup]:
        return group_failures(self._outcomes)

    def summary(self, report_path: Optional[str] = None, cancelled: bool = False) -> BatchSummary:
        return BatchSummary(
            total=self.total,
            passed=self.passed,
            failed=self.failed,
            results=self.outcomes,
            error_groups=self.group_failures(),
            report_path=report_path,
            cancelled=cancelled,
        )
