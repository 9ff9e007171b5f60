"""Convert legacy clock-time task times into ISO-8601 timestamps.

Early tasks stored ``time`` as a bare clock string such as ``"3:30 PM"``.
Reminder scheduling needs a full timestamp, so this script rewrites every
such value onto today's date (UTC). Values that are not AM/PM strings are
left alone.

Usage:
    python -m volunteerhub.scripts.migrate_task_times [--dry-run]
"""

import argparse
import asyncio
from datetime import date, datetime, timezone

from sqlalchemy import select

from volunteerhub.db.session import async_session_factory
from volunteerhub.models import Task

LEGACY_FORMATS = ("%I:%M %p", "%I:%M:%S %p", "%I %p")


def is_legacy_time(value: str) -> bool:
    upper = value.upper()
    return "AM" in upper or "PM" in upper


def to_iso(dt: datetime) -> str:
    """UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def convert_legacy_time(value: str, today: date | None = None) -> str | None:
    """Return the ISO timestamp for ``value`` on ``today``, or None if unparsable."""
    today = today or datetime.now(timezone.utc).date()
    for fmt in LEGACY_FORMATS:
        try:
            clock = datetime.strptime(value.strip().upper(), fmt).time()
        except ValueError:
            continue
        return to_iso(datetime.combine(today, clock, tzinfo=timezone.utc))
    return None


async def migrate(dry_run: bool = False) -> dict[str, int]:
    """Rewrite legacy times. Returns counts of updated and skipped tasks."""
    updated = 0
    skipped = 0

    async with async_session_factory() as db:
        result = await db.execute(select(Task))
        tasks = result.scalars().all()
        print(f"Found {len(tasks)} tasks")

        for task in tasks:
            if not is_legacy_time(task.time):
                skipped += 1
                continue

            iso_time = convert_legacy_time(task.time)
            if iso_time is None:
                print(f"  Skipped {task.id}: could not parse {task.time!r}")
                skipped += 1
                continue

            print(f"  {task.id}: {task.time!r} -> {iso_time}")
            task.time = iso_time
            updated += 1

        if not dry_run:
            await db.commit()

    print("\nSummary:")
    print(f"  Updated: {updated}")
    print(f"  Skipped: {skipped}")
    if dry_run:
        print("\n(Dry run - no changes made)")

    return {"updated": updated, "skipped": skipped}


def main():
    parser = argparse.ArgumentParser(
        description="Convert legacy AM/PM task times to ISO-8601 timestamps"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing",
    )
    args = parser.parse_args()

    asyncio.run(migrate(args.dry_run))


if __name__ == "__main__":
    main()
