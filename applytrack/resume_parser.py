"""Extract structured profile data from resume text.

Two interchangeable parsers, picked once from configuration:

* ``ServiceBackedResumeParser`` sends an excerpt to an OpenAI-compatible
  service and reads back the fragment as JSON. Failures are raised.
* ``DeterministicResumeParser`` uses regexes and a keyword list; it is only
  used when no service is configured, never as a fallback for a failing one.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from applytrack.config import Settings
from applytrack.errors import ExtractionError, UpstreamUnavailable
from applytrack.extract import extract_text, validate_upload
from applytrack.llm import build_client, chat_json
from applytrack.log import get_logger
from applytrack.models import ParsedProfileFragment, PersonalInfo

log = get_logger(__name__)

SERVICE_EXCERPT_CHARS = 6000
FALLBACK_RAW_TEXT_CHARS = 2000


class ResumeParser(ABC):
    @abstractmethod
    def parse(self, text: str) -> ParsedProfileFragment:
        ...


# ── Service-backed extraction ────────────────────────────────────────────

_PARSE_PROMPT = """\
You are an expert resume parser. Extract all information from the resume text and return valid JSON with this structure:
{
  "personal": {
    "firstName": "", "lastName": "", "phone": "", "email": "",
    "address": "", "city": "", "state": "", "country": "",
    "linkedin": "", "github": "", "portfolio": "", "summary": ""
  },
  "education": [{ "institution": "", "degree": "", "field": "", "startYear": "", "endYear": "", "gpa": "" }],
  "experience": [{ "company": "", "title": "", "location": "", "startDate": "", "endDate": "", "current": false, "description": "" }],
  "skills": [],
  "certifications": [{ "name": "", "issuer": "", "year": "" }],
  "languages": []
}
Use empty strings or empty lists for anything the resume does not state."""


_LIST_KEYS = ("education", "experience", "skills", "certifications", "languages")


def _check_shape(data: dict[str, Any]) -> None:
    if not isinstance(data.get("personal") or {}, dict):
        raise UpstreamUnavailable("Service returned 'personal' that is not an object")
    for key in _LIST_KEYS:
        if not isinstance(data.get(key) or [], list):
            raise UpstreamUnavailable(f"Service returned '{key}' that is not a list")


class ServiceBackedResumeParser(ResumeParser):
    def __init__(self, client: Any, model: str) -> None:
        self.client = client
        self.model = model

    def parse(self, text: str) -> ParsedProfileFragment:
        log.info("Parsing resume with %s", self.model)
        data = chat_json(
            self.client,
            self.model,
            _PARSE_PROMPT,
            f"Parse this resume:\n\n{text[:SERVICE_EXCERPT_CHARS]}",
        )
        data.pop("mock", None)
        _check_shape(data)
        fragment = ParsedProfileFragment.from_dict(data, raw_text=text)
        log.info(
            "Service extraction complete — name=%s %s, skills=%d",
            fragment.personal.first_name, fragment.personal.last_name, len(fragment.skills),
        )
        return fragment


# ── Deterministic fallback ───────────────────────────────────────────────

_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
_PHONE_RE = re.compile(r"\+?\d[\d \t\-().]{7,}")

SKILL_KEYWORDS: tuple[str, ...] = (
    "JavaScript", "Python", "Java", "React", "Node.js", "SQL", "MongoDB", "TypeScript",
    "HTML", "CSS", "Docker", "AWS", "Git", "Express", "Vue", "Angular", "Next.js",
    "PostgreSQL", "MySQL", "Redis", "Kubernetes", "GraphQL", "REST API", "C++", "C#",
    "Go", "Ruby", "PHP", "Swift", "Kotlin", "Flutter", "TensorFlow", "Machine Learning",
)


class DeterministicResumeParser(ResumeParser):
    """Best-effort extraction without a service; output is flagged ``mock``."""

    def __init__(self, keywords: tuple[str, ...] = SKILL_KEYWORDS) -> None:
        self.keywords = keywords

    def parse(self, text: str) -> ParsedProfileFragment:
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        name_parts = lines[0].split() if lines else []

        email_match = _EMAIL_RE.search(text)
        phone_match = _PHONE_RE.search(text)

        personal = PersonalInfo(
            first_name=name_parts[0] if name_parts else "",
            last_name=" ".join(name_parts[1:]),
            phone=phone_match.group(0).strip() if phone_match else "",
            email=email_match.group(0) if email_match else "",
            summary=" ".join(lines[:3]),
        )
        skills = [kw for kw in self.keywords if kw in text]

        log.info("Heuristic extraction complete — email=%s, skills=%d", bool(personal.email), len(skills))
        return ParsedProfileFragment(
            personal=personal,
            skills=skills,
            raw_text=text[:FALLBACK_RAW_TEXT_CHARS],
            mock=True,
        )


# ── Public API ───────────────────────────────────────────────────────────


def build_resume_parser(settings: Settings, client: Any = None) -> ResumeParser:
    """Pick the implementation once; *client* overrides the one built from settings."""
    if client is None and settings.service_configured:
        client = build_client(settings)
    if client is not None:
        return ServiceBackedResumeParser(client, settings.openai_model)
    log.info("Set OPENAI_API_KEY for full AI-powered parsing; using heuristic parser")
    return DeterministicResumeParser()


def parse_resume_upload(data: bytes, mime_type: str, parser: ResumeParser) -> ParsedProfileFragment:
    """Validate an upload, extract its text and parse it."""
    validate_upload(data, mime_type)
    text = extract_text(data, mime_type)
    if not text.strip():
        raise ExtractionError("Could not extract any text from the uploaded file")
    return parser.parse(text)
