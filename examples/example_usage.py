"""Example: drive the service layer directly (no Flask).

Controllers are thin; the rules live in the services wired by the container.
Run from the repository root with the database configured in .env.
"""

import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src" / "attendance_payroll"))

from attendance_payroll.main import load_settings  # noqa: E402
from attendance_payroll.container import build_container  # noqa: E402


def main():
    _, settings = load_settings()
    container = build_container(db_config=settings.DB_CONFIG, punch_token_secret=settings.PUNCH_TOKEN_SECRET)

    print(container.attendance_service.get_history_ui(user_id=1, limit=5))

    today = date.today()
    payroll = container.payroll_service.compute_monthly_payroll(1, today.year, today.month)
    print(payroll.to_dict())


if __name__ == "__main__":
    main()
