"""
Command-line entry point.

    applytrack search "python developer" --location remote --type remote
    applytrack parse-resume resume.pdf --save --user alice
    applytrack apply --user alice --job-id mock3
    applytrack update --user alice <application-id> --status interview

Every command prints one JSON document with a ``success`` flag; failures
exit non-zero.
"""
from __future__ import annotations

import argparse
import json
import mimetypes
import sys
from pathlib import Path
from typing import Any, Callable

from applytrack.aggregator import DEFAULT_PAGE_SIZE, DEFAULT_QUERY, build_aggregator
from applytrack.assistant import build_assistant
from applytrack.config import Settings, ensure_dirs, load_settings
from applytrack.errors import ApplyTrackError, NotFoundError, ValidationError
from applytrack.extract import DOC, DOCX, PDF
from applytrack.llm import build_client
from applytrack.log import get_logger
from applytrack.models import APPLICATION_STATUSES, JOB_TYPES
from applytrack.profile_store import ProfileStore, apply_parsed
from applytrack.resume_parser import build_resume_parser, parse_resume_upload
from applytrack.store import JsonApplicationStore
from applytrack.tracker import ApplicationTracker

log = get_logger(__name__)

_SUFFIX_MIME = {".pdf": PDF, ".docx": DOCX, ".doc": DOC}


class App:
    """Components wired once per process from Settings."""

    def __init__(self, settings: Settings) -> None:
        ensure_dirs(settings)
        self.settings = settings
        client = build_client(settings)
        self.aggregator = build_aggregator(settings)
        self.parser = build_resume_parser(settings, client)
        self.assistant = build_assistant(settings, client)
        self.tracker = ApplicationTracker(JsonApplicationStore(settings.data_dir / "applications.json"))
        self.profiles = ProfileStore(settings.data_dir / "profiles")


def _guess_mime(path: Path, declared: str | None) -> str:
    if declared:
        return declared
    return _SUFFIX_MIME.get(path.suffix.lower()) or mimetypes.guess_type(path.name)[0] or ""


# ── Commands ─────────────────────────────────────────────────────────────


def cmd_search(app: App, args: argparse.Namespace) -> dict[str, Any]:
    result = app.aggregator.search(args.query, args.location, args.page, args.limit, args.type)
    return result.to_dict()


def cmd_job(app: App, args: argparse.Namespace) -> dict[str, Any]:
    job = app.aggregator.get_by_id(args.id)
    if job is None:
        raise NotFoundError("Job not found")
    return {"job": job.to_dict()}


def cmd_parse_resume(app: App, args: argparse.Namespace) -> dict[str, Any]:
    path = Path(args.file).expanduser()
    if not path.is_file():
        raise ValidationError(f"File not found: {path}")
    fragment = parse_resume_upload(path.read_bytes(), _guess_mime(path, args.mime), app.parser)
    out: dict[str, Any] = {"data": fragment.to_dict(), "filename": path.name}
    if args.save:
        profile = apply_parsed(app.profiles.get(args.user), fragment)
        profile["resumeFileName"] = path.name
        out["profile"] = app.profiles.save(args.user, profile)
    return out


def cmd_detect_role(app: App, args: argparse.Namespace) -> dict[str, Any]:
    return app.assistant.detect_role(args.text).to_dict()


def cmd_form_fill(app: App, args: argparse.Namespace) -> dict[str, Any]:
    return app.assistant.fill_form(app.profiles.get(args.user), args.fields).to_dict()


def cmd_profile(app: App, args: argparse.Namespace) -> dict[str, Any]:
    return {"profile": app.profiles.get(args.user)}


def cmd_apply(app: App, args: argparse.Namespace) -> dict[str, Any]:
    if args.job_id:
        job = app.aggregator.get_by_id(args.job_id)
        if job is None:
            raise NotFoundError("Job not found")
    else:
        job = {"title": args.title or "", "company": args.company or "", "location": args.location or "",
               "applyUrl": args.apply_url or "", "source": "manual"}
    application = app.tracker.create(
        args.user, job, notes=args.notes or "",
        contact_name=args.contact_name or "", contact_email=args.contact_email or "",
    )
    return {"application": application.to_dict()}


def cmd_show(app: App, args: argparse.Namespace) -> dict[str, Any]:
    return {"application": app.tracker.get(args.user, args.id).to_dict()}


def cmd_update(app: App, args: argparse.Namespace) -> dict[str, Any]:
    changes = {
        key: value
        for key, value in (
            ("status", args.status),
            ("notes", args.notes),
            ("contactName", args.contact_name),
            ("contactEmail", args.contact_email),
            ("nextStep", args.next_step),
            ("timelineNote", args.timeline_note),
        )
        if value is not None
    }
    return {"application": app.tracker.update(args.user, args.id, changes).to_dict()}


def cmd_remove(app: App, args: argparse.Namespace) -> dict[str, Any]:
    app.tracker.remove(args.user, args.id)
    return {"message": "Application removed"}


def cmd_list(app: App, args: argparse.Namespace) -> dict[str, Any]:
    return app.tracker.list(args.user, args.status, args.page, args.limit).to_dict()


# ── Parser ───────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="applytrack", description="Job search, resume parsing and application tracking")
    sub = p.add_subparsers(dest="command", required=True)

    def add(name: str, fn: Callable, help_: str, user: bool = False) -> argparse.ArgumentParser:
        sp = sub.add_parser(name, help=help_)
        sp.set_defaults(func=fn)
        if user:
            sp.add_argument("--user", required=True, help="Owning identity")
        return sp

    sp = add("search", cmd_search, "Search job listings")
    sp.add_argument("query", nargs="?", default=DEFAULT_QUERY)
    sp.add_argument("--location", default="")
    sp.add_argument("--page", type=int, default=1)
    sp.add_argument("--limit", type=int, default=DEFAULT_PAGE_SIZE)
    sp.add_argument("--type", choices=JOB_TYPES, default=None)

    sp = add("job", cmd_job, "Show one local catalog listing")
    sp.add_argument("id")

    sp = add("parse-resume", cmd_parse_resume, "Parse a PDF/DOCX resume")
    sp.add_argument("file")
    sp.add_argument("--mime", default=None, help="Declared MIME type (default: from suffix)")
    sp.add_argument("--save", action="store_true", help="Merge into the stored profile")
    sp.add_argument("--user", default="default")

    sp = add("detect-role", cmd_detect_role, "Guess a job role from text")
    sp.add_argument("text")

    sp = add("form-fill", cmd_form_fill, "Map profile values onto form labels", user=True)
    sp.add_argument("fields", nargs="+")

    add("profile", cmd_profile, "Show the stored profile", user=True)

    sp = add("apply", cmd_apply, "Track a new application", user=True)
    sp.add_argument("--job-id")
    sp.add_argument("--title")
    sp.add_argument("--company")
    sp.add_argument("--location")
    sp.add_argument("--apply-url")
    sp.add_argument("--notes")
    sp.add_argument("--contact-name")
    sp.add_argument("--contact-email")

    sp = add("show", cmd_show, "Show one application", user=True)
    sp.add_argument("id")

    sp = add("update", cmd_update, "Update an application", user=True)
    sp.add_argument("id")
    sp.add_argument("--status", choices=APPLICATION_STATUSES)
    sp.add_argument("--notes")
    sp.add_argument("--contact-name")
    sp.add_argument("--contact-email")
    sp.add_argument("--next-step")
    sp.add_argument("--timeline-note")

    sp = add("remove", cmd_remove, "Delete an application", user=True)
    sp.add_argument("id")

    sp = add("list", cmd_list, "List applications with per-status stats", user=True)
    sp.add_argument("--status", choices=APPLICATION_STATUSES)
    sp.add_argument("--page", type=int, default=1)
    sp.add_argument("--limit", type=int, default=20)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        app = App(load_settings())
        payload = {"success": True, **args.func(app, args)}
        code = 0
    except ApplyTrackError as exc:
        log.warning("%s failed: %s", args.command, exc)
        payload = {"success": False, "error": type(exc).__name__, "message": str(exc)}
        code = 1
    except Exception:
        log.exception("%s crashed", args.command)
        payload = {"success": False, "error": "InternalError", "message": "Unexpected internal error; see the log for details"}
        code = 1
    print(json.dumps(payload, indent=2, default=str))
    return code


if __name__ == "__main__":
    sys.exit(main())
