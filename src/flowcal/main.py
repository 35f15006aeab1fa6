from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from datetime import date
from typing import Callable, List, Optional, Tuple

from dotenv import load_dotenv

from .codec import encode_events
from .config import AppConfig, load_config
from .errors import SyncResult
from .logs import setup_logging
from .models import Event, EventDraft, parse_hhmm
from .render import render_month, render_timeline
from .store import HttpEventStore
from .sync import EventSync
from .views import day_agenda, event_log, month_grid, timeline, week_view

CONFIG_PATH_DEFAULT = "config.yaml"

logger = logging.getLogger(__name__)


def build_sync(cfg: AppConfig) -> EventSync:
    store = HttpEventStore(
        cfg.api.base_url,
        timeout=cfg.api.timeout_seconds,
        event_types=cfg.calendar.event_types,
    )
    return EventSync(store)


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def _mark(e: Event) -> str:
    return " [cancelled]" if e.cancelled else ""


def _print_notice(result: SyncResult) -> int:
    if result.ok:
        return 0
    print(f"Error: {result.notice}", file=sys.stderr)
    return 1


def _print_day(cfg: AppConfig, events: List[Event], day: date) -> None:
    view = day_agenda(events, day, cfg.calendar.calendar_locale)
    print(view.title)
    print(view.subtitle)
    for entry in view.entries:
        e = entry.event
        where = f" @ {e.location}" if e.location else ""
        print(f"  {entry.time_range}  {e.title} ({e.type}){where}{_mark(e)}  id={e.id}")


def _print_week(cfg: AppConfig, events: List[Event], day: date) -> None:
    view = week_view(
        events,
        day,
        cfg.calendar.week_start,
        cfg.layout.to_layout_config(),
        cfg.calendar.calendar_locale,
    )
    print(view.title)
    for tl in view.days:
        print(tl.title)
        for p in tl.placements:
            e = p.event
            print(f"  {e.start_time}-{e.end_time}  lane {p.lane + 1}/{p.lane_count}  {e.title}{_mark(e)}")


def _print_month(cfg: AppConfig, events: List[Event], day: date) -> None:
    view = month_grid(events, day, cfg.calendar.week_start, cfg.calendar.calendar_locale, today=date.today())
    print(view.title)
    print(" ".join(f"{label:>5}" for label in view.weekday_labels))
    for week in view.weeks:
        cells = []
        for cell in week:
            count = f"+{cell.active_count}" if cell.active_count else ""
            num = f"{cell.day.day}" if cell.in_month else f"({cell.day.day})"
            cells.append(f"{num + count:>5}")
        print(" ".join(cells))


def _print_log(cfg: AppConfig, events: List[Event]) -> None:
    entries = event_log(events, cfg.calendar.calendar_locale)
    if not entries:
        print("No events found.")
    for entry in entries:
        e = entry.event
        print(f"{entry.day_label:>7}  {entry.time_range}  {e.title}{_mark(e)}  ({entry.added_label})")


def _sync_reporter() -> Callable[[Tuple[Event, ...]], None]:
    previous: List[Tuple[Event, ...]] = []

    def on_change(snapshot: Tuple[Event, ...]) -> None:
        if previous and previous[-1] == snapshot:
            logger.debug("No event change; skipping report")
            return
        previous[:] = [snapshot]
        active = sum(1 for e in snapshot if e.is_active)
        print(f"Synced {len(snapshot)} events ({active} active)")

    return on_change


async def _watch(cfg: AppConfig, sync: EventSync) -> int:
    sync.subscribe(_sync_reporter())
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            pass
    print(f"Polling {cfg.api.base_url} every {cfg.poll_interval_seconds}s")
    await sync.run_periodic_refresh(cfg.poll_interval_seconds, stop)
    return 0


async def run(args: argparse.Namespace, cfg: AppConfig) -> int:
    sync = build_sync(cfg)

    if args.command == "watch":
        return await _watch(cfg, sync)

    if args.command == "create":
        for field in ("start", "end"):
            try:
                parse_hhmm(getattr(args, field))
            except ValueError as exc:
                print(f"Error: {exc}", file=sys.stderr)
                return 2
        draft = EventDraft(
            title=args.title,
            date=args.date or date.today(),
            start_time=args.start,
            end_time=args.end,
            type=args.type,
            description=args.description,
            location=args.location,
        )
        result = await sync.create(draft)
        if result.ok:
            print(f"Created {result.value.id}: {result.value.title}")
        return _print_notice(result)

    if args.command == "cancel":
        result = await sync.cancel(args.id)
        if result.ok:
            print(f"Cancelled {args.id}")
        return _print_notice(result)

    if args.command == "delete":
        result = await sync.delete(args.id)
        if result.ok:
            print(f"Deleted {args.id}")
        return _print_notice(result)

    refreshed = await sync.refresh()
    if not refreshed.ok:
        return _print_notice(refreshed)
    events = list(sync.events)
    day = getattr(args, "date", None) or date.today()

    if args.command == "list":
        if args.json:
            print(json.dumps(encode_events(events), indent=2, ensure_ascii=False))
        else:
            for e in sorted(events, key=lambda e: (e.date, e.start_time, e.id)):
                print(f"{e.date.isoformat()} {e.start_time}-{e.end_time}  {e.title} ({e.type}){_mark(e)}  id={e.id}")
    elif args.command == "day":
        _print_day(cfg, events, day)
    elif args.command == "week":
        _print_week(cfg, events, day)
    elif args.command == "month":
        _print_month(cfg, events, day)
    elif args.command == "log":
        _print_log(cfg, events)
    elif args.command == "render":
        locale = cfg.calendar.calendar_locale
        if args.view == "month":
            view = month_grid(events, day, cfg.calendar.week_start, locale, today=date.today())
            img = render_month(view, cfg.display.width, cfg.display.height, cfg.calendar.event_types)
        else:
            view = timeline(events, day, cfg.layout.to_layout_config(), locale)
            img = render_timeline(view, cfg.display.width, cfg.display.height, cfg.calendar.event_types)
        img.save(args.out)
        print(f"Wrote {args.out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Flow calendar: schedule events and view them by day, week and month")
    ap.add_argument("--config", default=None, help=f"YAML config (e.g. {CONFIG_PATH_DEFAULT})")
    ap.add_argument("--log-level", default="WARNING")
    ap.add_argument("--json-logs", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    lst = sub.add_parser("list")
    lst.add_argument("--json", action="store_true")

    for name in ("day", "week", "month"):
        p = sub.add_parser(name)
        p.add_argument("--date", type=_iso_date, help="YYYY-MM-DD, defaults to today")

    sub.add_parser("log")
    sub.add_parser("watch")

    create = sub.add_parser("create")
    create.add_argument("--title", required=True)
    create.add_argument("--date", type=_iso_date, help="YYYY-MM-DD, defaults to today")
    create.add_argument("--start", default="09:00")
    create.add_argument("--end", default="10:00")
    create.add_argument("--type", required=True)
    create.add_argument("--description")
    create.add_argument("--location")

    cancel = sub.add_parser("cancel")
    cancel.add_argument("id")

    delete = sub.add_parser("delete")
    delete.add_argument("id")

    render = sub.add_parser("render")
    render.add_argument("view", choices=["day", "month"])
    render.add_argument("--date", type=_iso_date, help="YYYY-MM-DD, defaults to today")
    render.add_argument("--out", required=True)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, json_format=args.json_logs)
    cfg = load_config(args.config)
    return asyncio.run(run(args, cfg))


if __name__ == "__main__":
    raise SystemExit(main())
