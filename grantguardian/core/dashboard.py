from typing import List
from grantguardian.schemas.grant import Grant, GrantStatus
from grantguardian.schemas.report import GrantSummary


def summarize_grants(grants: List[Grant]) -> GrantSummary:
    """
    Counts and sums over an organization's grants.
    Grants without an award amount count toward the totals as zero.
    """
    summary = GrantSummary(total_grants=len(grants))

    for grant in grants:
        amount = grant.award_amount or 0.0
        summary.total_awarded += amount

        if grant.status == GrantStatus.ACTIVE.value:
            summary.active_count += 1
            summary.active_awarded += amount
        elif grant.status == GrantStatus.PENDING.value:
            summary.pending_count += 1
        elif grant.status == GrantStatus.CLOSED.value:
            summary.closed_count += 1

    summary.total_awarded = round(summary.total_awarded, 2)
    summary.active_awarded = round(summary.active_awarded, 2)
    return summary
