"""Example: drive the service layer directly (no Flask).

Controllers stay thin; the hiring and profile rules live in the services.
"""

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "hr_portal"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from hr_portal.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    for role in container.references_repo.list_roles():
        print(role.role_name, "->", sorted(container.access_policy.get_allowed_fields(role.role_name, False)))

    print(container.metadata_service.list_users_with_metadata(page=1, per_page=5))


if __name__ == "__main__":
    main()
