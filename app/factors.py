import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple
import pandas as pd
from .models import Lead
from .normalizer import hours_since, try_parse_date


class FactorKind(Enum):
    LEAD_SOURCE = ("lead_source", "Lead Source")
    VALID_EMAIL = ("has_valid_email", "Valid Email")
    COMPANY_MATCH = ("has_company_match", "Company Match")
    INDUSTRY_MATCH = ("industry_match", "Industry Match")
    RECENCY = ("days_since_created", "Recency")
    LEAD_STATUS = ("lead_status", "Lead Status")
    ENGAGEMENT = ("engagement_score", "Engagement")
    PROFILE_COMPLETE = ("profile_completeness", "Profile Complete")
    COMPANY_SIZE = ("company_size_bucket", "Company Size")
    ACTIVITY_RECENCY = ("recency_score", "Activity Recency")

    @property
    def key(self) -> str:
        return self.value[0]

    @property
    def display_name(self) -> str:
        return self.value[1]


STATUS_VALUES = {
    "new": 0.3,
    "open": 0.5,
    "in_progress": 0.7,
    "qualified": 1.0,
    "unqualified": 0.1,
}
DEFAULT_STATUS_VALUE = 0.5

# Highest tier first; the first tier with a matching keyword wins.
TITLE_TIERS: Tuple[Tuple[Tuple[str, ...], float], ...] = (
    (("ceo", "founder", "owner"), 1.0),
    (("director", "vp", "chief"), 0.8),
    (("manager", "head"), 0.6),
)
DEFAULT_TITLE_VALUE = 0.3

RECENCY_WINDOW_DAYS = 90
NOTES_WINDOW_HOURS = 30 * 24


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _bool_value(flag: bool) -> float:
    return 1.0 if flag else 0.0


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and "@" in email


def lead_source(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    return _bool_value(bool(lead.email))


def valid_email(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    return _bool_value(is_valid_email(lead.email))


def company_match(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    return _bool_value(bool(lead.company))


def industry_match(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    return _bool_value(bool(lead.industry))


def recency(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    created = try_parse_date(lead.create_date)
    if created is None:
        return None
    days = math.floor(hours_since(created, now) / 24)
    return clamp(1 - days / RECENCY_WINDOW_DAYS, 0.0, 1.0)


def lead_status(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    if not lead.lead_status:
        return None
    return STATUS_VALUES.get(lead.lead_status.lower(), DEFAULT_STATUS_VALUE)


def engagement(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    opens = float(lead.email_open_count or 0)
    clicks = float(lead.email_click_count or 0)
    return clamp((opens / 10) * 0.4 + (clicks / 3) * 0.6, 0.0, 1.0)


def profile_completeness(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    fields = [
        lead.email, lead.firstname, lead.lastname,
        lead.company, lead.jobtitle, lead.phone,
        lead.city, lead.country, lead.industry,
    ]
    filled = sum(1 for f in fields if f)
    return filled / len(fields)


def company_size(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    if not lead.jobtitle:
        return None
    title = lead.jobtitle.lower()
    for keywords, value in TITLE_TIERS:
        if any(kw in title for kw in keywords):
            return value
    return DEFAULT_TITLE_VALUE


def activity_recency(lead: Lead, now: pd.Timestamp) -> Optional[float]:
    if (lead.num_deals or 0) > 0:
        return 0.7
    notes = try_parse_date(lead.notes_last_updated)
    if notes is not None and hours_since(notes, now) < NOTES_WINDOW_HOURS:
        return 0.5
    return 0.2


@dataclass(frozen=True)
class FactorSpec:
    kind: FactorKind
    compute: Callable[[Lead, pd.Timestamp], Optional[float]]
    suppress_zero: bool = False


# Evaluation order is output order.
FACTORS: Tuple[FactorSpec, ...] = (
    FactorSpec(FactorKind.LEAD_SOURCE, lead_source, suppress_zero=True),
    FactorSpec(FactorKind.VALID_EMAIL, valid_email, suppress_zero=True),
    FactorSpec(FactorKind.COMPANY_MATCH, company_match, suppress_zero=True),
    FactorSpec(FactorKind.INDUSTRY_MATCH, industry_match, suppress_zero=True),
    FactorSpec(FactorKind.RECENCY, recency),
    FactorSpec(FactorKind.LEAD_STATUS, lead_status),
    FactorSpec(FactorKind.ENGAGEMENT, engagement),
    FactorSpec(FactorKind.PROFILE_COMPLETE, profile_completeness),
    FactorSpec(FactorKind.COMPANY_SIZE, company_size),
    FactorSpec(FactorKind.ACTIVITY_RECENCY, activity_recency),
)
