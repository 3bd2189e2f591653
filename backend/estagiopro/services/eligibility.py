"""Certificate eligibility check used by the document generator."""
from enum import Enum

from estagiopro.models.internship import REPORT_COUNT, Internship, InternshipKind, InternshipStatus
from estagiopro.services.lifecycle import completed_report_count, remaining_workload


class BlockingReason(str, Enum):
    STATUS_NOT_COMPLETED = "status_not_completed"
    WORKLOAD_INCOMPLETE = "workload_incomplete"
    ADVISOR_MISSING = "advisor_missing"
    REPORTS_INCOMPLETE = "reports_incomplete"


def evaluate_certificate_eligibility(internship: Internship) -> dict:
    """Return ``{"eligible": bool, "reasons": [BlockingReason, ...]}``.

    Every rule is checked so callers can show all blockers at once.
    """
    reasons = []

    if internship.status != InternshipStatus.COMPLETED.value:
        reasons.append(BlockingReason.STATUS_NOT_COMPLETED)

    if remaining_workload(internship) > 0:
        reasons.append(BlockingReason.WORKLOAD_INCOMPLETE)

    if not internship.advisor_id:
        reasons.append(BlockingReason.ADVISOR_MISSING)

    if (
        internship.kind == InternshipKind.MANDATORY.value
        and completed_report_count(internship) < REPORT_COUNT
    ):
        reasons.append(BlockingReason.REPORTS_INCOMPLETE)

    return {"eligible": not reasons, "reasons": reasons}
