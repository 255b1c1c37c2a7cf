"""
Reputation Aggregation - Company and Project Metrics
=====================================================

Pure functions over delay reports. Only approved reports count.

    reputations = compute_reputation(projects)
    for rep in reputations:
        print(rep.name, format_delay(rep.average_delay_days))

Delays are kept as floating point days and only rounded for display.
A report without an actual delivery date is measured against "now", so an
undelivered project keeps accumulating delay until it ships.
"""

import math
from collections import OrderedDict
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from .models import (
    AnalysisResult,
    CompanyReputation,
    DelayStats,
    ProjectDelay,
    ProjectReputation,
)

SECONDS_PER_DAY = 60 * 60 * 24
DAYS_PER_MONTH = 30.44
DAYS_PER_YEAR = 365.25

ON_TIME_LABEL = "Em dia"
EARLY_SUFFIX = " adiantado"


def parse_date(value: str) -> datetime:
    """Parse a YYYY-MM-DD string as UTC midnight."""
    parsed = date.fromisoformat(value)
    return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc)


def delay_in_days(promised_date: str, actual_date: Optional[str] = None,
                  now: Optional[datetime] = None) -> float:
    """Days between the promised and the actual (or current) delivery date.

    Negative when delivered early.
    """
    promised = parse_date(promised_date)
    if actual_date:
        actual = parse_date(actual_date)
    else:
        actual = now or datetime.now(timezone.utc)
    return (actual - promised).total_seconds() / SECONDS_PER_DAY


def _js_round(value: float) -> int:
    # Half-up rounding, matching how delays have always been displayed
    return math.floor(value + 0.5)


def _round_to_half(value: float) -> float:
    return math.floor(value * 2 + 0.5) / 2


def _format_number(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return f"{value:g}"


def summarize(submissions: Iterable[ProjectDelay], now: Optional[datetime] = None) -> DelayStats:
    """Aggregate the approved reports in ``submissions``.

    An empty set yields all-zero stats.
    """
    approved = [p for p in submissions if p.is_approved]
    if not approved:
        return DelayStats()

    delays = [delay_in_days(p.promised_date, p.actual_date, now) for p in approved]
    on_time = sum(1 for d in delays if _js_round(d) <= 0)

    answered = [p for p in approved if isinstance(p.would_buy_again, bool)]
    yes = sum(1 for p in answered if p.would_buy_again is True)

    count = len(approved)
    return DelayStats(
        count=count,
        average_rating=sum(p.rating for p in approved) / count,
        average_delay_days=sum(delays) / count,
        on_time_percentage=on_time / count * 100,
        would_buy_again_percentage=(yes / len(answered) * 100) if answered else 0.0,
        would_buy_again_responses=len(answered),
    )


def compute_reputation(
    projects: Iterable[ProjectDelay],
    analyses: Optional[Dict[str, AnalysisResult]] = None,
    loading: Optional[Dict[str, bool]] = None,
    now: Optional[datetime] = None,
) -> List[CompanyReputation]:
    """Rank companies by average delay.

    Ascending average delay; ties go to the company with more tracked
    projects. Companies without approved reports are left out.
    """
    analyses = analyses or {}
    loading = loading or {}

    by_company: Dict[str, List[ProjectDelay]] = OrderedDict()
    for project in projects:
        if not project.is_approved:
            continue
        by_company.setdefault(project.company_name, []).append(project)

    reputations = [
        CompanyReputation(
            name=name,
            projects=group,
            stats=summarize(group, now),
            analysis=analyses.get(name),
            is_analysis_loading=loading.get(name, False),
        )
        for name, group in by_company.items()
    ]
    reputations.sort(key=lambda r: (r.average_delay_days, -r.project_count))
    return reputations


def compute_project_reputations(
    projects: Iterable[ProjectDelay],
    company_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[ProjectReputation]:
    """Per-project aggregates, optionally restricted to one company.

    Grouped by (company, project name) in first-seen order.
    """
    groups: Dict[tuple, List[ProjectDelay]] = OrderedDict()
    for project in projects:
        if not project.is_approved:
            continue
        if company_name is not None and project.company_name != company_name:
            continue
        groups.setdefault((project.company_name, project.project_name), []).append(project)

    return [
        ProjectReputation(
            company_name=company,
            project_name=name,
            submissions=group,
            stats=summarize(group, now),
        )
        for (company, name), group in groups.items()
    ]


def format_delay(days: float) -> str:
    """Human readable delay, e.g. ``"12 dias"``, ``"1.5 meses"``, ``"2a 3m"``."""
    rounded = _js_round(days)
    if rounded == 0:
        return ON_TIME_LABEL

    suffix = EARLY_SUFFIX if rounded < 0 else ""
    absolute = abs(rounded)

    if absolute >= DAYS_PER_YEAR:
        years = math.floor(absolute / DAYS_PER_YEAR)
        months = _round_to_half((absolute % DAYS_PER_YEAR) / DAYS_PER_MONTH)
        result = f"{years}a"
        if months > 0:
            result += f" {_format_number(months)}m"
        return result + suffix

    if absolute >= 30:
        months = _round_to_half(absolute / DAYS_PER_MONTH)
        noun = "mês" if months == 1 else "meses"
        return f"{_format_number(months)} {noun}{suffix}"

    return f"{absolute} dia{'s' if absolute != 1 else ''}{suffix}"
