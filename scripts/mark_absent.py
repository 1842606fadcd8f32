"""Persist ABSENT markers for a day (default: yesterday, company-local).

Usage: python scripts/mark_absent.py [--date YYYY-MM-DD] [--company ID]
"""

from __future__ import annotations

import argparse

from _bootstrap import settings_and_container

from attendance_payroll.common.datetime_utils import parse_iso_date


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--date", type=parse_iso_date, default=None)
    parser.add_argument("--company", type=int, default=None)
    args = parser.parse_args()

    _, container = settings_and_container()
    job = container.absent_marker_job
    summaries = [job.run(args.company, args.date)] if args.company else job.run_all(args.date)
    for s in summaries:
        print(f"company={s.company_id} date={s.run_date} marked={s.processed} skipped={s.skipped}")


if __name__ == "__main__":
    main()
