"""
Project health classification.

A project is scored from three signals: days until its domain expires,
days since it was last touched (GitHub push, content update or manual
check-in, whichever is newest) and its AdSense review state. Each signal
contributes at most one rule from the tables below; the project status is
the most severe status among the rules that fired.

Health is never stored. It is recomputed from the current clock on every
read, so a project can drift from good to danger without any edit.
"""

import enum
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .timeutil import (
    BoundaryMode, NEVER_UPDATED_DAYS, days_between, latest, local_now, to_datetime
)


class HealthStatus(enum.Enum):
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    HealthStatus.GOOD: 0,
    HealthStatus.WARNING: 1,
    HealthStatus.DANGER: 2,
}


@dataclass(frozen=True)
class HealthRule:
    limit: int
    status: HealthStatus
    reason_key: str


# Days until expiry strictly below the limit. Most specific first.
EXPIRY_RULES = (
    HealthRule(0, HealthStatus.DANGER, 'health.domainExpired'),
    HealthRule(15, HealthStatus.DANGER, 'health.domainExpiring'),
    HealthRule(30, HealthStatus.WARNING, 'health.domainExpiringSoon'),
)

# Days since last update strictly above the limit. Most specific first.
STALENESS_RULES = (
    HealthRule(60, HealthStatus.DANGER, 'health.noUpdateLong'),
    HealthRule(14, HealthStatus.WARNING, 'health.noUpdateMedium'),
)

# AdSense states that affect health; banned is checked before limited.
ADSENSE_RULES = {
    'banned': (HealthStatus.DANGER, 'health.adsenseBanned'),
    'limited': (HealthStatus.WARNING, 'health.adsenseLimited'),
}

NEVER_UPDATED_REASON = 'health.neverUpdated'


@dataclass(frozen=True)
class HealthSignals:
    """Day counts derived from a project snapshot at a given instant."""
    days_until_expiry: float  # math.inf when no expiry is recorded
    days_since_update: int
    never_updated: bool
    adsense_status: str


@dataclass(frozen=True)
class TriggeredRule:
    status: HealthStatus
    reason_key: str
    params: Optional[Dict[str, int]] = None


def _plain(value) -> Optional[str]:
    """Accept enum members or raw strings for status fields."""
    if value is None:
        return None
    return getattr(value, 'value', value)


def effective_last_update(project) -> Optional[datetime]:
    """Newest of the three activity timestamps, or None if never updated."""
    return latest(
        getattr(project, 'last_github_push', None),
        getattr(project, 'last_content_update', None),
        getattr(project, 'last_manual_update', None),
    )


def compute_signals(project, now: Optional[datetime] = None) -> HealthSignals:
    """Derive rolling-window day counts for a project."""
    now = to_datetime(now) if now is not None else local_now()

    last_update = effective_last_update(project)
    if last_update is None:
        days_since_update = NEVER_UPDATED_DAYS
    else:
        days_since_update = days_between(last_update, now, BoundaryMode.ROLLING)

    domain_expiry = to_datetime(getattr(project, 'domain_expiry', None))
    if domain_expiry is None:
        days_until_expiry = math.inf
    else:
        days_until_expiry = days_between(now, domain_expiry, BoundaryMode.ROLLING)

    return HealthSignals(
        days_until_expiry=days_until_expiry,
        days_since_update=days_since_update,
        never_updated=last_update is None,
        adsense_status=_plain(getattr(project, 'adsense_status', None)) or 'none',
    )


def triggered_rules(signals: HealthSignals) -> List[TriggeredRule]:
    """
    Rules that fire for the given signals, in display order:
    domain expiry, then staleness, then AdSense.
    """
    fired = []

    for rule in EXPIRY_RULES:
        if signals.days_until_expiry < rule.limit:
            params = None if rule.limit == 0 else {'days': signals.days_until_expiry}
            fired.append(TriggeredRule(rule.status, rule.reason_key, params))
            break

    for rule in STALENESS_RULES:
        if signals.days_since_update > rule.limit:
            if signals.never_updated:
                fired.append(TriggeredRule(rule.status, NEVER_UPDATED_REASON))
            else:
                fired.append(TriggeredRule(rule.status, rule.reason_key, {'days': signals.days_since_update}))
            break

    adsense = ADSENSE_RULES.get(signals.adsense_status)
    if adsense:
        status, reason_key = adsense
        fired.append(TriggeredRule(status, reason_key))

    return fired


def classify(project, now: Optional[datetime] = None) -> HealthStatus:
    """Classify a project as good, warning or danger."""
    fired = triggered_rules(compute_signals(project, now))
    if not fired:
        return HealthStatus.GOOD
    return max((rule.status for rule in fired), key=lambda s: s.severity)


def explain_reasons(project, lookup: Callable[..., str], now: Optional[datetime] = None) -> List[str]:
    """Human-readable reasons behind a project's health status (tooltip text)."""
    reasons = []
    for rule in triggered_rules(compute_signals(project, now)):
        if rule.params:
            reasons.append(lookup(rule.reason_key, rule.params))
        else:
            reasons.append(lookup(rule.reason_key))
    return reasons


# ============================================================================
# LISTING HELPERS
# ============================================================================

def summarize_health(projects: Iterable, now: Optional[datetime] = None) -> Dict[str, int]:
    """Count projects per health status."""
    counts = {status.value: 0 for status in HealthStatus}
    for project in projects:
        counts[classify(project, now).value] += 1
    return counts


def _matches_query(project, query: str) -> bool:
    query = query.lower()
    for field in ('name', 'site_url', 'niche_category'):
        value = getattr(project, field, None)
        if value and query in value.lower():
            return True
    return False


def filter_projects(
    projects: Iterable,
    health: Optional[str] = None,
    adsense: Optional[str] = None,
    status: Optional[str] = None,
    query: Optional[str] = None,
    sort_by_update: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Tuple[object, HealthStatus]]:
    """
    Filter projects for the dashboard table.

    Args:
        health: 'good', 'warning', 'danger' or None/'all'
        adsense: AdSense status value or None/'all'
        status: project status value or None/'all'
        query: case-insensitive substring of name, URL or niche
        sort_by_update: 'asc' or 'desc' on effective last update (never = oldest)

    Returns:
        List of (project, health status) pairs
    """
    rows = [(p, classify(p, now)) for p in projects]

    if query:
        rows = [row for row in rows if _matches_query(row[0], query)]

    if health and health != 'all':
        rows = [row for row in rows if row[1].value == health]

    if adsense and adsense != 'all':
        rows = [row for row in rows if _plain(row[0].adsense_status) == adsense]

    if status and status != 'all':
        rows = [row for row in rows if _plain(row[0].status) == status]

    if sort_by_update:
        def update_key(row):
            last = effective_last_update(row[0])
            return last if last is not None else datetime.min
        rows.sort(key=update_key, reverse=(sort_by_update == 'desc'))

    return rows
