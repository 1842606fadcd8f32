from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
PACKAGE_ROOT = REPO_ROOT / "src" / "attendance_payroll"
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

from attendance_payroll.container import Container, build_container  # noqa: E402
from attendance_payroll.main import configure_logging, load_settings  # noqa: E402


def settings_and_container() -> tuple[object, Container]:
    _, settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        punch_token_secret=settings.PUNCH_TOKEN_SECRET,
        punch_token_ttl_seconds=int(getattr(settings, "PUNCH_TOKEN_TTL_SECONDS", 120)),
    )
    return settings, container
