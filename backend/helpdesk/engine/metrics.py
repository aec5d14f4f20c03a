"""Derived Metrics - Durations and SLA aging computed on read"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..config.settings import settings
from ..domain.models import SlaRule, Ticket, TimeTracking
from ..domain.enums import SlaStatus
from ..utils.time import utc_now, ensure_utc, format_duration, format_time_ago
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DurationResult:
    """Elapsed time, clamped at zero; ``anomaly`` marks a negative raw value"""
    duration: timedelta
    anomaly: bool = False

    @property
    def seconds(self) -> int:
        return int(self.duration.total_seconds())


def elapsed_duration(
    created_at: datetime,
    resolved_at: Optional[datetime] = None,
    now: Optional[datetime] = None
) -> DurationResult:
    """
    Time from creation until resolution, or until now for open tickets.

    Naive timestamps are read as UTC. A negative result (clock skew, bad
    data) is reported as zero with ``anomaly`` set.
    """
    start = ensure_utc(created_at)
    end = ensure_utc(resolved_at) if resolved_at else ensure_utc(now or utc_now())

    duration = end - start
    if duration < timedelta(0):
        logger.warning(
            f"Negative elapsed duration ({duration}) clamped to zero",
            extra={"field_name": "created_at"}
        )
        return DurationResult(duration=timedelta(0), anomaly=True)
    return DurationResult(duration=duration)


def time_ago(ts: datetime, now: Optional[datetime] = None) -> str:
    """Relative time since ts ("5 minutes ago")"""
    delta = ensure_utc(now or utc_now()) - ensure_utc(ts)
    return format_time_ago(max(0, int(delta.total_seconds())))


def sla_deadline(ticket: Ticket, rule: Optional[SlaRule] = None) -> Optional[datetime]:
    """Due date if set, else creation plus the rule's resolution time"""
    if ticket.due_date:
        return ensure_utc(ticket.due_date)
    if rule:
        return ensure_utc(ticket.created_at) + timedelta(hours=rule.resolution_time_hours)
    return None


def sla_status(
    ticket: Ticket,
    rule: Optional[SlaRule] = None,
    now: Optional[datetime] = None,
    at_risk_ratio: Optional[float] = None
) -> Optional[SlaStatus]:
    """
    Classify a ticket against its deadline.

    Returns:
        None when the ticket has no deadline, else on_track, at_risk or breached
    """
    deadline = sla_deadline(ticket, rule)
    if deadline is None:
        return None

    ratio = settings.sla_at_risk_ratio if at_risk_ratio is None else at_risk_ratio
    start = ensure_utc(ticket.created_at)
    point = ensure_utc(ticket.resolved_at) if ticket.resolved_at else ensure_utc(now or utc_now())

    if point > deadline:
        return SlaStatus.BREACHED

    window = (deadline - start).total_seconds()
    if window <= 0:
        return SlaStatus.AT_RISK

    consumed = (point - start).total_seconds() / window
    if consumed >= ratio:
        return SlaStatus.AT_RISK
    return SlaStatus.ON_TRACK


def time_tracking(
    ticket: Ticket,
    rule: Optional[SlaRule] = None,
    now: Optional[datetime] = None
) -> TimeTracking:
    """Bundle the read-time metrics of a ticket"""
    now = now or utc_now()
    elapsed = elapsed_duration(ticket.created_at, ticket.resolved_at, now)
    return TimeTracking(
        elapsed_seconds=elapsed.seconds,
        elapsed_display=format_duration(elapsed.seconds),
        duration_anomaly=elapsed.anomaly,
        created_ago=time_ago(ticket.created_at, now),
        is_resolved=ticket.resolved_at is not None,
        deadline=sla_deadline(ticket, rule),
        sla_status=sla_status(ticket, rule, now),
    )


def average_resolution_seconds(tickets: Iterable[Ticket]) -> Optional[int]:
    """Mean creation-to-resolution time of resolved tickets, None if there are none"""
    durations = [
        elapsed_duration(t.created_at, t.resolved_at).seconds
        for t in tickets
        if t.resolved_at is not None
    ]
    if not durations:
        return None
    return int(sum(durations) / len(durations))
