"""Track applications: status, append-only timeline, per-status stats."""
from __future__ import annotations

import math
import uuid
from collections import Counter
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable

from applytrack.errors import NotFoundError, ValidationError
from applytrack.log import get_logger
from applytrack.models import (
    APPLICATION_STATUSES,
    INITIAL_STATUS,
    Application,
    ApplicationPage,
    JobSnapshot,
    Listing,
    TimelineEntry,
    utcnow,
)
from applytrack.store import ApplicationStore

log = get_logger(__name__)

SUBMITTED_NOTE = "Application submitted"

# Accepted update keys (wire and Python spelling) → Application attribute.
_EDITABLE: dict[str, str] = {
    "notes": "notes",
    "contactName": "contact_name",
    "contact_name": "contact_name",
    "contactEmail": "contact_email",
    "contact_email": "contact_email",
    "nextStep": "next_step",
    "next_step": "next_step",
}
_TIMELINE_NOTE_KEYS = ("timelineNote", "timeline_note")


def _snapshot(job: Listing | Mapping[str, Any] | None) -> JobSnapshot:
    if isinstance(job, Listing):
        snap = JobSnapshot(
            title=job.title,
            company=job.company,
            location=job.location,
            apply_url=job.apply_url,
            source=job.source,
            salary=job.salary.display(),
        )
    elif isinstance(job, Mapping):
        snap = JobSnapshot.from_dict(dict(job))
    else:
        snap = JobSnapshot(title="", company="")
    if not snap.title or not snap.company:
        raise ValidationError("Job title and company are required")
    return snap


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class ApplicationTracker:
    def __init__(self, store: ApplicationStore, clock: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self.clock = clock

    def _require(self, user_id: str, app_id: str) -> Application:
        app = self.store.get(user_id, app_id)
        if app is None:
            raise NotFoundError("Application not found")
        return app

    def create(
        self,
        user_id: str,
        job: Listing | Mapping[str, Any] | None,
        notes: str = "",
        contact_name: str = "",
        contact_email: str = "",
    ) -> Application:
        snap = _snapshot(job)
        now = self.clock()
        app = Application(
            id=uuid.uuid4().hex,
            user_id=user_id,
            job=snap,
            status=INITIAL_STATUS,
            applied_at=now,
            updated_at=now,
            notes=_text(notes),
            contact_name=_text(contact_name),
            contact_email=_text(contact_email),
            timeline=[TimelineEntry(status=INITIAL_STATUS, date=now, note=SUBMITTED_NOTE)],
        )
        self.store.add(app)
        log.info("Tracked: %s @ %s [%s]", snap.title, snap.company, app.id)
        return app

    def get(self, user_id: str, app_id: str) -> Application:
        return self._require(user_id, app_id)

    def update(self, user_id: str, app_id: str, changes: Mapping[str, Any]) -> Application:
        """Apply the keys present in *changes*; a real status change appends one timeline entry."""
        app = self._require(user_id, app_id)
        if "status" in changes and changes["status"] not in APPLICATION_STATUSES:
            raise ValidationError(
                f"Invalid status {changes['status']!r}; expected one of {', '.join(APPLICATION_STATUSES)}"
            )
        now = max(self.clock(), app.updated_at)

        new_status = changes.get("status")
        if new_status is not None and new_status != app.status:
            note = next((_text(changes[k]) for k in _TIMELINE_NOTE_KEYS if k in changes), "")
            app.timeline.append(TimelineEntry(status=new_status, date=now, note=note))
            log.debug("Updated %s: %s → %s", app.id, app.status, new_status)
            app.status = new_status

        for key, attr in _EDITABLE.items():
            if key in changes:
                setattr(app, attr, _text(changes[key]))

        app.updated_at = now
        # Status and timeline land in the same write.
        if not self.store.save(app):
            raise NotFoundError("Application not found")
        return app

    def remove(self, user_id: str, app_id: str) -> None:
        if not self.store.delete(user_id, app_id):
            raise NotFoundError("Application not found")
        log.info("Removed application %s", app_id)

    def list(
        self,
        user_id: str,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> ApplicationPage:
        if page < 1 or page_size < 1:
            raise ValidationError("page and page size must be 1 or greater")
        if status and status not in APPLICATION_STATUSES:
            raise ValidationError(f"Invalid status filter {status!r}")

        owned = self.store.list_for(user_id)
        status_counts = dict(Counter(a.status for a in owned))

        selected = [a for a in owned if a.status == status] if status else owned
        selected.sort(key=lambda a: a.applied_at, reverse=True)

        start = (page - 1) * page_size
        total = len(selected)
        return ApplicationPage(
            applications=selected[start:start + page_size],
            total=total,
            status_counts=status_counts,
            pages=math.ceil(total / page_size),
        )
