"""Close attendance sessions left open past shift end plus the buffer.

Usage: python scripts/auto_punch_out.py [--company ID]
"""

from __future__ import annotations

import argparse

from _bootstrap import settings_and_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--company", type=int, default=None)
    args = parser.parse_args()

    _, container = settings_and_container()
    job = container.auto_punch_out_job
    summaries = [job.run(args.company)] if args.company else job.run_all()
    for s in summaries:
        print(f"company={s.company_id} date={s.run_date} closed={s.processed} skipped={s.skipped}")


if __name__ == "__main__":
    main()
