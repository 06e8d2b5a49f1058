"""HTML rendering for member-facing summary emails."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from html import escape

from app.models import CommitmentStatusChange


@dataclass
class MemberStatusSummary:
    """One member's status changes for a reporting day."""

    user_id: int
    report_date: date
    approved: list[CommitmentStatusChange] = field(default_factory=list)
    declined: list[CommitmentStatusChange] = field(default_factory=list)

    @property
    def total_approved_value(self) -> float:
        return round(sum(change.total_price for change in self.approved), 2)

    @property
    def total_declined_value(self) -> float:
        return round(sum(change.total_price for change in self.declined), 2)

    @property
    def changes(self) -> list[CommitmentStatusChange]:
        return [*self.approved, *self.declined]


def daily_summary_subject(summary: MemberStatusSummary) -> str:
    return f"Daily Commitment Status Update - {len(summary.approved)} Approved, {len(summary.declined)} Declined"


def _size_rows(change: CommitmentStatusChange) -> str:
    lines = (change.commitment_details or {}).get("sizeCommitments") or []
    if not lines:
        quantity = (change.commitment_details or {}).get("quantity") or 0
        return f"<li>Quantity: {escape(str(quantity))}</li>"
    return "".join(
        f"<li>{escape(str(line.get('name') or line.get('size') or ''))}: "
        f"{escape(str(line.get('quantity', 0)))} x ${float(line.get('pricePerUnit') or 0):.2f}</li>"
        for line in lines
    )


def _change_block(change: CommitmentStatusChange) -> str:
    response = ""
    if change.distributor_response:
        response = f"<p><em>Distributor response:</em> {escape(change.distributor_response)}</p>"
    return (
        '<div style="border:1px solid #ddd;padding:12px;margin-bottom:8px;">'
        f"<h4>{escape(change.deal_name)}</h4>"
        f"<p>Distributor: {escape(change.distributor_name)}</p>"
        f"<ul>{_size_rows(change)}</ul>"
        f"<p>Total: ${change.total_price:.2f}</p>"
        f"{response}"
        "</div>"
    )


def _section(title: str, changes: list[CommitmentStatusChange], total: float) -> str:
    if not changes:
        return ""
    blocks = "".join(_change_block(change) for change in changes)
    return f"<h3>{escape(title)} ({len(changes)}) - ${total:.2f}</h3>{blocks}"


def render_daily_status_summary(member_name: str, summary: MemberStatusSummary) -> str:
    return (
        "<html><body>"
        f"<p>Hello {escape(member_name)},</p>"
        f"<p>Here is the status of your commitments for {summary.report_date.strftime('%B %d, %Y')}.</p>"
        f"{_section('Approved Commitments', summary.approved, summary.total_approved_value)}"
        f"{_section('Declined Commitments', summary.declined, summary.total_declined_value)}"
        "<p>Thank you for buying with the co-op.</p>"
        "</body></html>"
    )
