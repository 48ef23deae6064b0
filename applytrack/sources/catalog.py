"""Local demo catalog served when the live provider is unavailable or unconfigured."""
from __future__ import annotations

from datetime import datetime

from applytrack.log import get_logger
from applytrack.models import SOURCE_LOCAL, Listing, Salary, utcnow
from applytrack.sources.base import ProviderPage

log = get_logger(__name__)

# Stamped once at import; the catalog never changes after process start.
_LOADED_AT: datetime = utcnow()


def _demo(
    suffix: str,
    title: str,
    company: str,
    location: str,
    description: str,
    salary: tuple[int, int],
    job_type: str,
    tags: list[str],
) -> Listing:
    return Listing(
        id=f"mock{suffix}",
        title=title,
        company=company,
        location=location,
        description=description,
        apply_url="#",
        salary=Salary(min=salary[0], max=salary[1], currency="USD"),
        job_type=job_type,
        tags=tags,
        source=SOURCE_LOCAL,
        posted_at=_LOADED_AT,
    )


CATALOG: tuple[Listing, ...] = (
    _demo(
        "1", "Senior Frontend Developer", "TechCorp Inc.", "San Francisco, CA",
        "We are looking for a skilled Senior Frontend Developer with experience in React, "
        "TypeScript, and modern web technologies. You will lead the development of our "
        "user-facing products.",
        (120000, 160000), "full-time", ["React", "TypeScript", "CSS", "JavaScript"],
    ),
    _demo(
        "2", "Backend Engineer (Node.js)", "StartupAI", "Remote",
        "Join our growing team as a Backend Engineer. You will build scalable APIs and "
        "microservices using Node.js, Express, and MongoDB.",
        (100000, 140000), "remote", ["Node.js", "Express", "MongoDB", "AWS"],
    ),
    _demo(
        "3", "Full Stack Developer", "GlobalSoft", "New York, NY",
        "Build end-to-end features across our SaaS platform. Work with React frontend and "
        "Python/Django backend. PostgreSQL database experience valued.",
        (110000, 150000), "full-time", ["React", "Python", "PostgreSQL", "Django"],
    ),
    _demo(
        "4", "DevOps Engineer", "CloudNative Co.", "Austin, TX",
        "Manage CI/CD pipelines, Kubernetes clusters, and cloud infrastructure on AWS. "
        "Experience with Terraform and Docker required.",
        (115000, 155000), "full-time", ["DevOps", "Kubernetes", "AWS", "Docker", "Terraform"],
    ),
    _demo(
        "5", "Data Scientist", "AnalyticsPro", "Boston, MA",
        "Apply machine learning and statistical analysis to drive business insights. "
        "Python, TensorFlow, and SQL expertise needed.",
        (105000, 145000), "full-time", ["Python", "Machine Learning", "TensorFlow", "SQL"],
    ),
    _demo(
        "6", "Mobile Developer (React Native)", "AppWorks", "Remote",
        "Build cross-platform mobile apps using React Native. Work with iOS and Android "
        "platforms, integrate REST APIs.",
        (95000, 130000), "remote", ["React Native", "iOS", "Android", "JavaScript"],
    ),
    _demo(
        "7", "Software Engineer II", "Enterprise Solutions", "Seattle, WA",
        "Work on distributed backend systems with Java/Spring Boot. Collaborate with "
        "cross-functional teams on high-impact products.",
        (130000, 170000), "full-time", ["Java", "Spring Boot", "Microservices", "AWS"],
    ),
    _demo(
        "8", "UI/UX Designer & Developer", "DesignFirst Agency", "Los Angeles, CA",
        "Bridge design and development. Create stunning interfaces in Figma and implement "
        "them with React. Strong CSS and animation skills.",
        (90000, 120000), "full-time", ["Figma", "React", "CSS", "UI/UX"],
    ),
)


def _matches_query(job: Listing, needle: str) -> bool:
    return (
        needle in job.title.lower()
        or needle in job.description.lower()
        or any(needle in t.lower() for t in job.tags)
    )


class LocalCatalog:
    """Filter and paginate a fixed listing tuple; declaration order is kept."""

    def __init__(self, listings: tuple[Listing, ...] = CATALOG) -> None:
        self.listings = listings

    def search(
        self,
        query: str,
        location: str,
        page: int,
        page_size: int,
        job_type: str | None = None,
    ) -> ProviderPage:
        filtered = list(self.listings)
        if query:
            needle = query.lower()
            filtered = [j for j in filtered if _matches_query(j, needle)]
        if location:
            loc = location.lower()
            filtered = [j for j in filtered if loc in j.location.lower()]
        if job_type:
            filtered = [j for j in filtered if j.job_type == job_type]

        start = (page - 1) * page_size
        log.debug("Local catalog q=%r loc=%r type=%r matched %d", query, location, job_type, len(filtered))
        return ProviderPage(listings=filtered[start:start + page_size], total=len(filtered))

    def get(self, listing_id: str) -> Listing | None:
        for job in self.listings:
            if job.id == listing_id:
                return job
        return None
