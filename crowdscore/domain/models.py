"""
Domain Model - Users, Companies and Delay Reports
==================================================

Plain dataclasses shared by the persistence layer, the aggregation
functions and the web layer. Records travel to and from the store as
JSON-compatible dicts; optional fields that are unset are omitted.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional


class SubmissionStatus(Enum):
    """Moderation status of a delay report."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class UserRole(Enum):
    """Account type."""
    SITE_ADMIN = "SiteAdmin"
    COMPANY_ADMIN = "CompanyAdmin"
    USER = "User"


@dataclass
class User:
    """Registered account. Email is the primary key."""
    email: str
    password_hash: str
    role: UserRole
    full_name: str
    birth_date: str
    company_name: Optional[str] = None

    @property
    def is_site_admin(self) -> bool:
        return self.role is UserRole.SITE_ADMIN

    @property
    def is_company_admin(self) -> bool:
        return self.role is UserRole.COMPANY_ADMIN

    @property
    def first_name(self) -> str:
        return self.full_name.split(" ")[0] if self.full_name else ""

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "email": self.email,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "full_name": self.full_name,
            "birth_date": self.birth_date,
        }
        if self.company_name:
            data["company_name"] = self.company_name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            email=data["email"],
            password_hash=data["password_hash"],
            role=UserRole(data["role"]),
            full_name=data.get("full_name", ""),
            birth_date=data.get("birth_date", ""),
            company_name=data.get("company_name") or None,
        )


@dataclass
class Company:
    """A company that runs crowdfunding campaigns. Name is the key."""
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Company":
        return cls(name=data["name"])


@dataclass
class ProjectDelay:
    """A single user report of a campaign's promised and actual delivery."""
    id: str
    company_name: str
    project_name: str
    crowdfunding_link: str
    promised_date: str
    status: SubmissionStatus
    rating: float
    submitter_email: str
    actual_date: Optional[str] = None
    comment: Optional[str] = None
    company_reply: Optional[str] = None
    user_rebuttal: Optional[str] = None
    rejection_reason: Optional[str] = None
    would_buy_again: Optional[bool] = None

    def __post_init__(self):
        self.rating = float(self.rating)

    @property
    def is_approved(self) -> bool:
        return self.status is SubmissionStatus.APPROVED

    @property
    def is_pending(self) -> bool:
        return self.status is SubmissionStatus.PENDING

    @property
    def is_rejected(self) -> bool:
        return self.status is SubmissionStatus.REJECTED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectDelay":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["status"] = SubmissionStatus(values["status"])
        return cls(**values)


@dataclass
class AnalysisResult:
    """Cached AI summary for a company. Error results are cached too."""
    text: str
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "is_error": self.is_error}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        return cls(text=data.get("text", ""), is_error=bool(data.get("is_error", False)))


@dataclass
class DelayStats:
    """Aggregated metrics over a set of approved reports."""
    count: int = 0
    average_rating: float = 0.0
    average_delay_days: float = 0.0
    on_time_percentage: float = 0.0
    would_buy_again_percentage: float = 0.0
    would_buy_again_responses: int = 0


@dataclass
class CompanyReputation:
    """Company-level ranking entry."""
    name: str
    projects: List[ProjectDelay] = field(default_factory=list)
    stats: DelayStats = field(default_factory=DelayStats)
    analysis: Optional[AnalysisResult] = None
    is_analysis_loading: bool = False

    @property
    def average_delay_days(self) -> float:
        return self.stats.average_delay_days

    @property
    def average_rating(self) -> float:
        return self.stats.average_rating

    @property
    def project_count(self) -> int:
        return self.stats.count


@dataclass
class ProjectReputation:
    """Per-project aggregate for the company and project detail views."""
    company_name: str
    project_name: str
    submissions: List[ProjectDelay] = field(default_factory=list)
    stats: DelayStats = field(default_factory=DelayStats)

    @property
    def complaint_count(self) -> int:
        return self.stats.count

    @property
    def average_delay_days(self) -> float:
        return self.stats.average_delay_days
