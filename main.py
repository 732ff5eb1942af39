#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT / "src"))

from zoneinfo import ZoneInfo

import requests

from jobtrack.agents.capture_agent import CaptureAgent
from jobtrack.core.config import load_config
from jobtrack.core.context import AppContext
from jobtrack.core.db import StorageError
from jobtrack.core.http import HttpClient
from jobtrack.core.logging import log_error, log_event, setup_logging
from jobtrack.core.schema import STATUSES, ApplicationRecord


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Track job applications captured from job pages")
    ap.add_argument("--config", default=str(ROOT / "config.yaml"), help="Path to config.yaml")
    sub = ap.add_subparsers(dest="command", required=True)

    cap = sub.add_parser("capture", help="Scrape a job page")
    cap.add_argument("--url", required=True, help="Page URL (fetched unless --html-file is given)")
    cap.add_argument("--html-file", default="", help="Read saved page HTML instead of fetching")
    cap.add_argument("--auto", action="store_true", help="Run auto-capture and notify")
    cap.add_argument("--save", action="store_true", help="Add the scraped job right away")

    add = sub.add_parser("add", help="Add an application by hand")
    add.add_argument("--company", required=True)
    add.add_argument("--position", required=True)
    add.add_argument("--status", choices=STATUSES, default="applied")
    add.add_argument("--date", dest="dateApplied", default="")
    add.add_argument("--url", default="")
    add.add_argument("--skills", default="", help="Comma-separated")
    add.add_argument("--notes", default="")

    ls = sub.add_parser("list", help="List applications")
    ls.add_argument("--status", choices=("all",) + STATUSES, default="all")
    ls.add_argument("--search", default="")
    ls.add_argument("--json", action="store_true")

    upd = sub.add_parser("update", help="Edit an application")
    upd.add_argument("id")
    upd.add_argument("--company")
    upd.add_argument("--position")
    upd.add_argument("--status", choices=STATUSES)
    upd.add_argument("--date", dest="dateApplied")
    upd.add_argument("--url")
    upd.add_argument("--skills")
    upd.add_argument("--notes")

    dl = sub.add_parser("delete", help="Delete an application")
    dl.add_argument("id")

    clr = sub.add_parser("clear", help="Delete every application")
    clr.add_argument("--yes", action="store_true", help="Confirm")

    cyc = sub.add_parser("cycle", help="Advance an application's status")
    cyc.add_argument("id")

    trk = sub.add_parser("track", help="Answer a 'New Job Detected' notification")
    trk.add_argument("notification_id")
    trk.add_argument("--button", type=int, default=0)

    dis = sub.add_parser("dismiss", help="Dismiss a notification")
    dis.add_argument("notification_id")

    sub.add_parser("remind", help="Remind about applications without news for a week")

    st = sub.add_parser("settings", help="Show or change settings")
    st.add_argument("--auto-capture", choices=("on", "off"))
    st.add_argument("--notifications", choices=("on", "off"))

    exp = sub.add_parser("export", help="Write all data to a JSON file")
    exp.add_argument("file")

    imp = sub.add_parser("import", help="Replace all data from a JSON export")
    imp.add_argument("file")

    sub.add_parser("badge", help="Print the active-application count")
    sub.add_parser("stats", help="Print application counts")
    return ap.parse_args(argv)


def _make_run_id(tz: ZoneInfo, log_dir: Path) -> str:
    base = datetime.now(tz).strftime("%Y%m%d_%H%M%S")
    log_dir.mkdir(parents=True, exist_ok=True)
    candidate = base
    idx = 1
    while (log_dir / f"run_{candidate}.jsonl").exists():
        candidate = f"{base}_{idx:02d}"
        idx += 1
    return candidate


def _print_record(r: ApplicationRecord) -> None:
    skills = ", ".join(r.skills) if r.skills else "-"
    print(f"{r.id}  [{r.status}]  {r.position} @ {r.company}  ({r.dateApplied})")
    if r.url:
        print(f"    {r.url}")
    print(f"    skills: {skills}")
    if r.notes:
        print(f"    notes: {r.notes}")


def _fields_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    keys = ("company", "position", "status", "dateApplied", "url", "skills", "notes")
    return {k: getattr(args, k) for k in keys if getattr(args, k, None) is not None}


def _read_page(cfg: Dict[str, Any], args: argparse.Namespace) -> tuple[str, str]:
    if args.html_file:
        return Path(args.html_file).read_text(encoding="utf-8"), args.url
    runtime = cfg["runtime"]
    http = HttpClient(
        user_agent=runtime["user_agent"],
        timeout_sec=int(runtime["http_timeout_sec"]),
        retries=int(runtime["http_retries"]),
    )
    return http.fetch_page_smart(args.url)


def run_command(ctx: AppContext, args: argparse.Namespace) -> int:
    agent = CaptureAgent(ctx)
    tracker = ctx.tracker
    cmd = args.command

    if cmd == "capture":
        html, final_url = _read_page(ctx.cfg, args)
        if args.auto:
            notification_id = agent.check_auto_capture(html, final_url)
            if not notification_id:
                print("Nothing to notify (auto-capture off, incomplete page or already tracked).")
            return 0
        fields = agent.capture_for_review(html, final_url)
        if fields is None:
            print("This job is already tracked.")
            return 0
        print(json.dumps(fields, indent=2, ensure_ascii=False))
        if args.save:
            record = agent.add_manual(fields)
            if record:
                _print_record(record)
        return 0

    if cmd == "add":
        record = agent.add_manual(_fields_from_args(args))
        if record is None:
            print("Application already tracked.")
            return 1
        _print_record(record)
        return 0

    if cmd == "list":
        records = tracker.search(args.search, args.status)
        if args.json:
            print(json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False))
            return 0
        if not records:
            print("No applications yet.")
        for r in records:
            _print_record(r)
        return 0

    if cmd == "update":
        record = tracker.update(args.id, _fields_from_args(args))
        if record is None:
            print(f"No application with id {args.id}")
            return 1
        _print_record(record)
        return 0

    if cmd == "delete":
        if not tracker.delete(args.id):
            print(f"No application with id {args.id}")
            return 1
        print(f"Deleted {args.id}")
        return 0

    if cmd == "clear":
        if not args.yes:
            print("Refusing to delete all applications without --yes")
            return 1
        tracker.clear_all()
        print("All applications deleted.")
        return 0

    if cmd == "cycle":
        record = tracker.cycle_status(args.id)
        if record is None:
            print(f"No application with id {args.id}")
            return 1
        print(f"{record.id} -> {record.status}")
        return 0

    if cmd == "track":
        record = agent.on_button_clicked(args.notification_id, args.button)
        if record:
            _print_record(record)
        return 0

    if cmd == "dismiss":
        agent.on_clicked(args.notification_id)
        return 0

    if cmd == "remind":
        if not agent.remind_stale():
            print("No stale applications.")
        return 0

    if cmd == "settings":
        changes: Dict[str, bool] = {}
        if args.auto_capture:
            changes["autoCapture"] = args.auto_capture == "on"
        if args.notifications:
            changes["notifications"] = args.notifications == "on"
        settings = tracker.save_settings(**changes) if changes else ctx.settings
        print(json.dumps(settings.to_dict(), indent=2))
        return 0

    if cmd == "export":
        Path(args.file).write_text(
            json.dumps(tracker.export_data(), indent=2, ensure_ascii=False), encoding="utf-8"
        )
        print(f"Exported {len(tracker.records())} application(s) to {args.file}")
        return 0

    if cmd == "import":
        try:
            data = json.loads(Path(args.file).read_text(encoding="utf-8"))
        except json.JSONDecodeError as ex:
            print(f"Invalid import file: {ex}")
            return 1
        count = tracker.import_data(data)
        print(f"Imported {count} application(s)")
        return 0

    if cmd == "badge":
        print(ctx.refresh_badge())
        return 0

    if cmd == "stats":
        print(json.dumps(tracker.stats(), indent=2))
        return 0

    return 2


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        cfg = load_config(args.config)
    except Exception as e:
        print(f"Failed to load config: {e}")
        return 2

    runtime = cfg["runtime"]
    log_dir = Path(runtime["log_dir"])
    run_id = _make_run_id(ZoneInfo(runtime["timezone"]), log_dir)
    setup_logging(run_id, log_dir=str(log_dir), level=runtime["log_level"])
    log_event("run_start", run_id=run_id, command=args.command)

    ctx: AppContext | None = None
    try:
        # a corrupt or unreadable state db fails here with StorageError
        ctx = AppContext.open(cfg)
        return run_command(ctx, args)
    except (StorageError, ValueError, OSError, requests.RequestException) as ex:
        # ImportValidationError is a ValueError too
        log_error("command_failed", run_id=run_id, command=args.command, error=repr(ex))
        print(f"Error: {ex}")
        return 1
    finally:
        if ctx is not None:
            ctx.close()
        log_event("run_end", run_id=run_id, command=args.command)


if __name__ == "__main__":
    raise SystemExit(main())
