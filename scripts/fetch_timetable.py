"""Fetch a WebUntis timetable as JSON or a table.

Standalone CLI script. Authenticates with UNTIS_USER / UNTIS_PASS, fetches
the timetable of the account itself, a class or a teacher, logs out, and
prints the lessons with their period numbers.

Run with: python scripts/fetch_timetable.py
Class:    python scripts/fetch_timetable.py --class 5AHIF
Teacher:  python scripts/fetch_timetable.py --teacher "John SMITH"
Range:    python scripts/fetch_timetable.py --start 2024-03-11 --end 2024-03-15
Table:    python scripts/fetch_timetable.py --table

Exit codes:
  0 = success (JSON or table on stdout)
  1 = error (message on stderr)
"""

import argparse
import json
import sys
from datetime import date, timedelta

from dotenv import load_dotenv
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

load_dotenv()

from untis_client.client import UntisClient  # noqa: E402
from untis_client.config import get_config  # noqa: E402
from untis_client.errors import TransientError, UntisError  # noqa: E402
from untis_client.logging import get_logger, setup_logging  # noqa: E402
from untis_client.models import Lesson  # noqa: E402
from untis_client.registry import ClientRegistry  # noqa: E402
from untis_client.transport import Deadline  # noqa: E402

log = get_logger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}")


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Fetch a WebUntis timetable as JSON or table.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subject_group = parser.add_mutually_exclusive_group()
    subject_group.add_argument(
        "--class",
        dest="class_name",
        type=str,
        default=None,
        help="Class short name, e.g. 5AHIF.",
    )
    subject_group.add_argument(
        "--teacher",
        type=str,
        default=None,
        help='Teacher display name, e.g. "John SMITH".',
    )

    parser.add_argument(
        "--start",
        type=_parse_date,
        default=None,
        help="First day (YYYY-MM-DD). Default: Monday of this week.",
    )
    parser.add_argument(
        "--end",
        type=_parse_date,
        default=None,
        help="Last day (YYYY-MM-DD). Default: start + 4 days.",
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Output a human-readable table instead of JSON.",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=120.0,
        help="Seconds allowed for the whole fetch (default: 120).",
    )
    return parser.parse_args()


def _lesson_to_dict(lesson: Lesson) -> dict:
    return {
        "date": lesson.start.date().isoformat(),
        "start": lesson.start.strftime("%H:%M"),
        "end": lesson.end.strftime("%H:%M"),
        "start_period": lesson.start_period,
        "end_period": lesson.end_period,
        "classes": list(lesson.classes),
        "teachers": list(lesson.teachers),
        "rooms": list(lesson.rooms),
    }


def _print_table(lessons: list[Lesson]) -> None:
    if not lessons:
        print("No lessons.")
        return

    header = f"{'Date':<11} {'Time':<12} {'Per.':<6} {'Classes':<16} {'Teachers':<20} Rooms"
    print(header)
    print("-" * len(header))
    for lesson in lessons:
        row = _lesson_to_dict(lesson)
        periods = f"{row['start_period']}-{row['end_period']}"
        print(
            f"{row['date']:<11} {row['start'] + '-' + row['end']:<12} "
            f"{periods:<6} {', '.join(row['classes']):<16} "
            f"{', '.join(row['teachers']):<20} {', '.join(row['rooms'])}"
        )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_fixed(5),
    retry=retry_if_exception_type(TransientError),
    reraise=True,
)
def _fetch(args: argparse.Namespace, start: date, end: date) -> list[Lesson]:
    """Log in, fetch, log out. Retries the whole round on transient failures."""
    config = get_config()
    client = UntisClient(config, registry=ClientRegistry())
    deadline = Deadline(args.deadline)

    client.login(config.untis_user, config.untis_pass, deadline=deadline)
    try:
        if args.class_name:
            return client.class_lessons(
                config.untis_user, start, end, args.class_name, deadline=deadline
            )
        if args.teacher:
            return client.teacher_lessons(
                config.untis_user, start, end, args.teacher, deadline=deadline
            )
        return client.lessons(config.untis_user, start, end, deadline=deadline)
    finally:
        # A failed logout must not replace the fetch result or its error
        try:
            client.logout(config.untis_user, deadline=deadline)
        except UntisError as e:
            log.warning("logout_failed", error=str(e), type=type(e).__name__)


def main() -> int:
    args = _parse_args()
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    if not config.untis_user or not config.untis_pass:
        print("UNTIS_USER and UNTIS_PASS must be set (env or .env).", file=sys.stderr)
        return 1

    start = args.start or date.today() - timedelta(days=date.today().weekday())
    end = args.end or start + timedelta(days=4)
    if end < start:
        print("--end must not be before --start.", file=sys.stderr)
        return 1

    try:
        lessons = _fetch(args, start, end)
    except UntisError as e:
        log.error("fetch_failed", error=str(e), type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.table:
        _print_table(lessons)
    else:
        print(json.dumps([_lesson_to_dict(lesson) for lesson in lessons], indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
