"""Update compliance buckets for computer-target summaries."""

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Tuple


class ComplianceStatus(Enum):
    """Compliance bucket of a single computer target."""

    ERROR = "Error"
    NEEDING_UPDATES = "NeedingUpdates"
    UP_TO_DATE = "UpToDate"
    UNKNOWN = "Unknown"
    NONE = "None"


def _pending(summary: Any) -> int:
    return (
        summary.not_installed_count
        + summary.downloaded_count
        + summary.installed_pending_reboot_count
    )


def _nothing_pending(summary: Any) -> bool:
    return (
        summary.failed_count == 0
        and summary.not_installed_count == 0
        and summary.downloaded_count == 0
        and summary.installed_pending_reboot_count == 0
    )


def _has_errors(summary: Any) -> bool:
    return summary.failed_count != 0


def _needs_updates(summary: Any) -> bool:
    return summary.failed_count == 0 and _pending(summary) != 0


def _up_to_date(summary: Any) -> bool:
    return summary.unknown_count == 0 and _nothing_pending(summary)


def _unknown(summary: Any) -> bool:
    return summary.unknown_count != 0 and _nothing_pending(summary)


# Evaluation order matters: the first matching rule is the primary bucket.
RULES: List[Tuple[ComplianceStatus, Callable[[Any], bool]]] = [
    (ComplianceStatus.ERROR, _has_errors),
    (ComplianceStatus.NEEDING_UPDATES, _needs_updates),
    (ComplianceStatus.UP_TO_DATE, _up_to_date),
    (ComplianceStatus.UNKNOWN, _unknown),
]


def classify(summary: Any) -> List[ComplianceStatus]:
    """
    Evaluate every bucket rule against a computer-target summary.

    The rules are independent filters, so more than one bucket may match.
    Matching buckets are returned in rule order.

    Args:
        summary: Object exposing failed_count, not_installed_count,
            downloaded_count, installed_pending_reboot_count and unknown_count

    Returns:
        List[ComplianceStatus]: Matching buckets, or [NONE] if no rule matches
    """
    matched = [status for status, rule in RULES if rule(summary)]
    return matched or [ComplianceStatus.NONE]


def primary_status(summary: Any) -> ComplianceStatus:
    """Return the first bucket matched by classify()."""
    return classify(summary)[0]


def count_statuses(summaries: Iterable[Any]) -> Dict[ComplianceStatus, int]:
    """
    Count summaries per bucket, each rule applied independently.

    Args:
        summaries: Computer-target summaries of one group

    Returns:
        Dict[ComplianceStatus, int]: Count for each of the four rule buckets
    """
    counts = {status: 0 for status, _ in RULES}
    for summary in summaries:
        for status, rule in RULES:
            if rule(summary):
                counts[status] += 1
    return counts
