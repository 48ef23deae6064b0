"""Candidate profiles as YAML files, one per owner, plus resume merge."""
from __future__ import annotations

import copy
import re
from pathlib import Path
from typing import Any

import yaml

from applytrack.errors import StorageError
from applytrack.log import get_logger
from applytrack.models import ParsedProfileFragment, PersonalInfo, utcnow

log = get_logger(__name__)

_HEADER = (
    "# ============================================================\n"
    "# Candidate Profile — edit freely, completeness is recomputed on save\n"
    "# ============================================================\n\n"
)


def empty_profile() -> dict[str, Any]:
    personal = PersonalInfo().to_dict()
    personal.pop("email")
    personal["zipCode"] = ""
    return {
        "personal": personal,
        "education": [],
        "experience": [],
        "skills": [],
        "certifications": [],
        "languages": [],
        "resumeText": "",
        "resumeFileName": "",
        "preferences": {
            "desiredRoles": [],
            "desiredLocations": [],
            "minSalary": 0,
            "maxSalary": 0,
            "remote": False,
            "fullTime": True,
            "partTime": False,
            "contract": False,
        },
        "completeness": 0,
        "updatedAt": "",
    }


def completeness(profile: dict[str, Any]) -> int:
    personal = profile.get("personal") or {}
    score = 0
    if personal.get("firstName"):
        score += 10
    if personal.get("lastName"):
        score += 10
    if personal.get("phone"):
        score += 5
    if personal.get("summary"):
        score += 10
    if profile.get("education"):
        score += 15
    if profile.get("experience"):
        score += 20
    if profile.get("skills"):
        score += 15
    if profile.get("resumeText"):
        score += 15
    return min(score, 100)


def apply_parsed(profile: dict[str, Any], fragment: ParsedProfileFragment) -> dict[str, Any]:
    """Return a copy of *profile* with the parsed resume laid over it."""
    merged = copy.deepcopy(profile)
    personal = dict(merged.get("personal") or {})
    for key, value in fragment.personal.to_dict().items():
        if value:
            personal[key] = value
    merged["personal"] = personal

    if fragment.education:
        merged["education"] = [e.to_dict() for e in fragment.education]
    if fragment.experience:
        merged["experience"] = [e.to_dict() for e in fragment.experience]
    if fragment.skills:
        merged["skills"] = list(dict.fromkeys([*merged.get("skills", []), *fragment.skills]))
    if fragment.certifications:
        merged["certifications"] = [c.to_dict() for c in fragment.certifications]
    if fragment.languages:
        merged["languages"] = list(fragment.languages)
    if fragment.raw_text:
        merged["resumeText"] = fragment.raw_text
    return merged


def _safe_name(user_id: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9_.-]", "_", user_id).strip(".")
    return safe[:80] or "_"


class ProfileStore:
    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def _path(self, user_id: str) -> Path:
        return self.directory / f"{_safe_name(user_id)}.yaml"

    def get(self, user_id: str) -> dict[str, Any]:
        """Stored profile, creating an empty one on first access."""
        path = self._path(user_id)
        if not path.exists():
            return self.save(user_id, empty_profile())
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise StorageError(f"{path.name} is not valid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"{path.name} does not hold a profile mapping")
        profile = empty_profile()
        profile.update(data)
        return profile

    def save(self, user_id: str, profile: dict[str, Any]) -> dict[str, Any]:
        data = copy.deepcopy(profile)
        data["completeness"] = completeness(data)
        data["updatedAt"] = utcnow().isoformat()

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(user_id)
        yaml_str = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        path.write_text(_HEADER + yaml_str, encoding="utf-8")
        log.info("Profile written → %s (%d%% complete)", path.name, data["completeness"])
        return data
