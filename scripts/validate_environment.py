#!/usr/bin/env python3
"""Check that the local environment can run the room booker."""

from __future__ import annotations

import importlib
import sys
from datetime import date
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from roombooker.domain.constraints import validate_booking_config
from roombooker.domain.models import Room, RoomSchedule, ScheduledRoom, TimeInterval
from roombooker.services.day_fill_service import plan_day
from roombooker.utils.config import get_settings

SEPARATOR_LINE = "=" * 44

REQUIRED_PACKAGES = [
    ("fastapi", "fastapi"),
    ("uvicorn", "uvicorn"),
    ("pydantic", "pydantic"),
    ("httpx", "httpx"),
    ("pytest", "pytest"),
]


def _result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True

    if sys.version_info >= (3, 10):
        ok, line = _result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _result("Python version >= 3.10", False, f"found {sys.version.split()[0]}")
    results.append(line)
    all_passed = all_passed and ok

    missing: list[str] = []
    for module_name, dist_name in REQUIRED_PACKAGES:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            missing.append(f"{module_name} ({exc})")
    if missing:
        ok, line = _result("Required packages", False, "missing -> " + "; ".join(missing))
    else:
        ok, line = _result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    settings = get_settings()
    config = settings.booking_config()
    try:
        validate_booking_config(config)
        ok, line = _result(
            "Booking config",
            True,
            f": {config.min_hour:g}-{config.max_hour:g}h, max {config.max_booking_duration:g}h",
        )
    except ValueError as exc:
        ok, line = _result("Booking config", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    if ok:
        # Each room holds at most one block, so supply one room per block.
        block_count = int((config.max_hour - config.min_hour) // config.max_booking_duration) + 1
        rooms = []
        for index in range(block_count):
            schedule = RoomSchedule(date=date.today())
            schedule.add_free_time(TimeInterval(config.min_hour, config.max_hour))
            rooms.append(
                ScheduledRoom(
                    room=Room(room_id=f"check-{index}", name=f"Check {index}", capacity=config.max_attendees),
                    schedule=schedule,
                )
            )
        plan = plan_day(rooms, config.min_attendees, config)
        ok, line = _result(
            "Day planner",
            plan.is_complete(config.max_hour),
            f": {len(plan.assignments)} blocks across always-free rooms",
        )
        results.append(line)
        all_passed = all_passed and ok

    # Missing credentials only defer login, so this never fails the run.
    if settings.credentials_configured:
        results.append(f"[PASS] Booking credentials configured for {settings.booking_username}")
    else:
        results.append("[WARN] BOOKING_USERNAME / BOOKING_PASSWORD not set")

    print(SEPARATOR_LINE)
    print(" Room Booker Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
