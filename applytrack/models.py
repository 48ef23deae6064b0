"""Data models for listings, parsed resumes and tracked applications."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

JOB_TYPES: tuple[str, ...] = ("full-time", "part-time", "contract", "internship", "remote")
DEFAULT_JOB_TYPE = "full-time"

APPLICATION_STATUSES: tuple[str, ...] = (
    "applied", "pending", "interview", "offer", "rejected", "withdrawn",
)
INITIAL_STATUS = "applied"

SOURCE_LOCAL = "local-demo"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    return value.isoformat()


def from_iso(value: Any) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _text_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    seen: dict[str, None] = {}
    for item in value:
        item = _text(item)
        if item:
            seen.setdefault(item, None)
    return list(seen)


def _records(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


# ── Listings ─────────────────────────────────────────────────────────────


@dataclass
class Salary:
    min: int = 0
    max: int = 0
    currency: str = "USD"

    def display(self) -> str:
        """``$120,000 - $160,000`` style string; empty when no lower bound."""
        if not self.min:
            return ""
        if self.currency == "USD":
            return f"${self.min:,} - ${self.max:,}"
        return f"{self.currency} {self.min:,} - {self.max:,}"


@dataclass
class Listing:
    id: str
    title: str
    company: str
    location: str
    description: str
    apply_url: str
    salary: Salary
    job_type: str
    tags: list[str]
    source: str
    posted_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "description": self.description,
            "applyUrl": self.apply_url,
            "salary": {
                "min": self.salary.min,
                "max": self.salary.max,
                "currency": self.salary.currency,
            },
            "jobType": self.job_type,
            "tags": list(self.tags),
            "source": self.source,
            "postedAt": to_iso(self.posted_at),
        }


@dataclass
class SearchResult:
    listings: list[Listing]
    total: int
    source: str
    degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobs": [j.to_dict() for j in self.listings],
            "total": self.total,
            "source": self.source,
            "degraded": self.degraded,
        }


# ── Parsed resume ────────────────────────────────────────────────────────


@dataclass
class PersonalInfo:
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    linkedin: str = ""
    github: str = ""
    portfolio: str = ""
    summary: str = ""

    _KEYS = (
        ("first_name", "firstName"), ("last_name", "lastName"), ("phone", "phone"),
        ("email", "email"), ("address", "address"), ("city", "city"),
        ("state", "state"), ("country", "country"), ("linkedin", "linkedin"),
        ("github", "github"), ("portfolio", "portfolio"), ("summary", "summary"),
    )

    @classmethod
    def from_dict(cls, data: Any) -> PersonalInfo:
        data = data if isinstance(data, dict) else {}
        return cls(**{attr: _text(data.get(key)) for attr, key in cls._KEYS})

    def to_dict(self) -> dict[str, str]:
        return {key: getattr(self, attr) for attr, key in self._KEYS}


@dataclass
class Education:
    institution: str = ""
    degree: str = ""
    field: str = ""
    start_year: str = ""
    end_year: str = ""
    gpa: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Education:
        return cls(
            institution=_text(data.get("institution")),
            degree=_text(data.get("degree")),
            field=_text(data.get("field")),
            start_year=_text(data.get("startYear")),
            end_year=_text(data.get("endYear")),
            gpa=_text(data.get("gpa")),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "institution": self.institution,
            "degree": self.degree,
            "field": self.field,
            "startYear": self.start_year,
            "endYear": self.end_year,
            "gpa": self.gpa,
        }


@dataclass
class Experience:
    company: str = ""
    title: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    current: bool = False
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Experience:
        current = data.get("current", False)
        if isinstance(current, str):
            current = current.strip().lower() in ("true", "yes", "1")
        return cls(
            company=_text(data.get("company")),
            title=_text(data.get("title")),
            location=_text(data.get("location")),
            start_date=_text(data.get("startDate")),
            end_date=_text(data.get("endDate")),
            current=bool(current),
            description=_text(data.get("description")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "company": self.company,
            "title": self.title,
            "location": self.location,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "current": self.current,
            "description": self.description,
        }


@dataclass
class Certification:
    name: str = ""
    issuer: str = ""
    year: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Certification:
        return cls(
            name=_text(data.get("name")),
            issuer=_text(data.get("issuer")),
            year=_text(data.get("year")),
        )

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "issuer": self.issuer, "year": self.year}


@dataclass
class ParsedProfileFragment:
    personal: PersonalInfo = field(default_factory=PersonalInfo)
    education: list[Education] = field(default_factory=list)
    experience: list[Experience] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    certifications: list[Certification] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    raw_text: str = ""
    mock: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any], raw_text: str = "") -> ParsedProfileFragment:
        """Build from the camelCase wire shape; absent keys become empty."""
        return cls(
            personal=PersonalInfo.from_dict(data.get("personal")),
            education=[Education.from_dict(e) for e in _records(data.get("education"))],
            experience=[Experience.from_dict(e) for e in _records(data.get("experience"))],
            skills=_text_list(data.get("skills")),
            certifications=[Certification.from_dict(c) for c in _records(data.get("certifications"))],
            languages=_text_list(data.get("languages")),
            raw_text=raw_text,
            mock=bool(data.get("mock", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "personal": self.personal.to_dict(),
            "education": [e.to_dict() for e in self.education],
            "experience": [e.to_dict() for e in self.experience],
            "skills": list(self.skills),
            "certifications": [c.to_dict() for c in self.certifications],
            "languages": list(self.languages),
            "rawText": self.raw_text,
            "mock": self.mock,
        }


# ── Applications ─────────────────────────────────────────────────────────


@dataclass
class JobSnapshot:
    """Copy of the listing taken when the application is created."""

    title: str
    company: str
    location: str = ""
    apply_url: str = ""
    source: str = ""
    salary: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "applyUrl": self.apply_url,
            "source": self.source,
            "salary": self.salary,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobSnapshot:
        return cls(
            title=_text(data.get("title")),
            company=_text(data.get("company")),
            location=_text(data.get("location")),
            apply_url=_text(data.get("applyUrl") or data.get("apply_url")),
            source=_text(data.get("source")),
            salary=_text(data.get("salary")),
        )


@dataclass
class TimelineEntry:
    status: str
    date: datetime
    note: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status, "date": to_iso(self.date), "note": self.note}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimelineEntry:
        return cls(status=data["status"], date=from_iso(data["date"]), note=data.get("note") or "")


@dataclass
class Application:
    id: str
    user_id: str
    job: JobSnapshot
    status: str
    applied_at: datetime
    updated_at: datetime
    notes: str = ""
    contact_name: str = ""
    contact_email: str = ""
    next_step: str = ""
    timeline: list[TimelineEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "job": self.job.to_dict(),
            "status": self.status,
            "appliedAt": to_iso(self.applied_at),
            "updatedAt": to_iso(self.updated_at),
            "notes": self.notes,
            "contactName": self.contact_name,
            "contactEmail": self.contact_email,
            "nextStep": self.next_step,
            "timeline": [t.to_dict() for t in self.timeline],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Application:
        return cls(
            id=data["id"],
            user_id=data["userId"],
            job=JobSnapshot.from_dict(data.get("job") or {}),
            status=data["status"],
            applied_at=from_iso(data["appliedAt"]),
            updated_at=from_iso(data["updatedAt"]),
            notes=data.get("notes") or "",
            contact_name=data.get("contactName") or "",
            contact_email=data.get("contactEmail") or "",
            next_step=data.get("nextStep") or "",
            timeline=[TimelineEntry.from_dict(t) for t in data.get("timeline", [])],
        )


@dataclass
class ApplicationPage:
    applications: list[Application]
    total: int
    status_counts: dict[str, int]
    pages: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "applications": [a.to_dict() for a in self.applications],
            "total": self.total,
            "stats": dict(self.status_counts),
            "pages": self.pages,
        }
