"""Copy each profile's role into its identity metadata (one-off migration)."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "hr_portal"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from hr_portal.container import build_container


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    report = container.metadata_service.migrate_all()
    for outcome in report.results:
        status = f"OK ({outcome.role})" if outcome.success else f"FAILED: {outcome.error}"
        print(f"{outcome.email}: {status}")
    print(f"Migration completed: {report.successful} successful, {report.failed} failed (total={report.total})")


if __name__ == "__main__":
    main()
