"""Compute monthly payroll for every active staff member of a company.

Usage: python scripts/generate_payroll.py --company ID --year YYYY --month M
"""

from __future__ import annotations

import argparse

from _bootstrap import settings_and_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--company", type=int, required=True)
    parser.add_argument("--year", type=int, required=True)
    parser.add_argument("--month", type=int, required=True)
    args = parser.parse_args()

    _, container = settings_and_container()
    batch = container.payroll_service.compute_company_month(args.company, args.year, args.month)
    for r in batch.results:
        flag = " (no salary config)" if r.missing_salary_config else ""
        print(
            f"user={r.user_id} present={r.summary.present_days} gross={r.gross_amount:.2f} "
            f"net={r.net_amount:.2f} balance={r.balance_amount:.2f}{flag}"
        )
    for user_id, message in sorted(batch.errors.items()):
        print(f"user={user_id} ERROR {message}")


if __name__ == "__main__":
    main()
