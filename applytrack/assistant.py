"""Role detection and application-form filling, with or without the service."""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from applytrack.config import Settings
from applytrack.errors import UpstreamUnavailable, ValidationError
from applytrack.llm import build_client, chat_json
from applytrack.log import get_logger

log = get_logger(__name__)

ROLE_KEYWORDS: tuple[str, ...] = (
    "developer", "engineer", "designer", "manager", "analyst", "scientist", "architect",
)
DEFAULT_ROLE = "Software Engineer"
FALLBACK_CONFIDENCE = 0.85


@dataclass
class RoleGuess:
    role: str
    confidence: float
    alternatives: list[str] = field(default_factory=list)
    mock: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "confidence": self.confidence,
            "alternatives": list(self.alternatives),
            "mock": self.mock,
        }


@dataclass
class FormFill:
    filled: dict[str, str]
    mock: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"filled": dict(self.filled), "mock": self.mock}


def _require_text(text: str) -> None:
    if not text or not text.strip():
        raise ValidationError("Text is required")


def _require_form(profile: dict | None, fields: list[str] | None) -> None:
    if not profile or not fields:
        raise ValidationError("Profile and fields are required")


class Assistant(ABC):
    @abstractmethod
    def detect_role(self, text: str) -> RoleGuess:
        ...

    @abstractmethod
    def fill_form(self, profile: dict, fields: list[str]) -> FormFill:
        ...


class DeterministicAssistant(Assistant):
    def detect_role(self, text: str) -> RoleGuess:
        _require_text(text)
        low = text.lower()
        found = next((k for k in ROLE_KEYWORDS if k in low), None)
        role = found.capitalize() if found else DEFAULT_ROLE
        return RoleGuess(role=role, confidence=FALLBACK_CONFIDENCE, mock=True)

    def fill_form(self, profile: dict, fields: list[str]) -> FormFill:
        _require_form(profile, fields)
        personal = profile.get("personal") or {}
        full_name = f"{personal.get('firstName', '')} {personal.get('lastName', '')}".strip()

        filled: dict[str, str] = {}
        for label in fields:
            low = label.lower()
            if "name" in low:
                filled[label] = full_name
            elif "email" in low:
                filled[label] = profile.get("email") or personal.get("email") or ""
            elif "phone" in low:
                filled[label] = personal.get("phone", "")
            elif "linkedin" in low:
                filled[label] = personal.get("linkedin", "")
            elif "github" in low:
                filled[label] = personal.get("github", "")
            elif "summary" in low or "cover" in low:
                filled[label] = personal.get("summary", "")
            else:
                filled[label] = ""
        return FormFill(filled=filled, mock=True)


_ROLE_PROMPT = (
    "You are a job role detector. Extract the most specific job title/role from the given text. "
    'Return JSON: { "role": "string", "confidence": 0.0-1.0, "alternatives": [] }'
)

_FORM_PROMPT = (
    "You are an expert job application form filler. Given a user profile and a list of form "
    "field labels, return JSON mapping each field label to the appropriate value from the "
    "profile. Be concise. Don't fabricate information not in the profile."
)


class ServiceAssistant(Assistant):
    def __init__(self, client: Any, model: str) -> None:
        self.client = client
        self.model = model

    def detect_role(self, text: str) -> RoleGuess:
        _require_text(text)
        data = chat_json(self.client, self.model, _ROLE_PROMPT, text, temperature=0.3)
        role = str(data.get("role") or "").strip()
        if not role:
            raise UpstreamUnavailable("Service response is missing a role")
        try:
            confidence = float(data.get("confidence", 0.0))
        except (TypeError, ValueError) as exc:
            raise UpstreamUnavailable("Service returned a non-numeric confidence") from exc
        alternatives = data.get("alternatives") or []
        if not isinstance(alternatives, list):
            alternatives = []
        return RoleGuess(
            role=role,
            confidence=max(0.0, min(confidence, 1.0)),
            alternatives=[str(a) for a in alternatives if a],
        )

    def fill_form(self, profile: dict, fields: list[str]) -> FormFill:
        _require_form(profile, fields)
        user = (
            f"Profile: {json.dumps(profile, default=str)}\n\n"
            f"Form fields to fill: {json.dumps(fields)}\n\n"
            'Return JSON: { "filled": { "fieldLabel": "value", ... } }'
        )
        data = chat_json(self.client, self.model, _FORM_PROMPT, user, temperature=0.2)
        filled = data.get("filled")
        if not isinstance(filled, dict):
            raise UpstreamUnavailable("Service response is missing the filled mapping")
        return FormFill(filled={label: str(filled.get(label) or "") for label in fields})


def build_assistant(settings: Settings, client: Any = None) -> Assistant:
    if client is None and settings.service_configured:
        client = build_client(settings)
    if client is not None:
        return ServiceAssistant(client, settings.openai_model)
    return DeterministicAssistant()
