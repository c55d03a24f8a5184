from __future__ import annotations

from typing import Callable

from subflix.app.config import Settings
from subflix.app.infra.db.base import AdminConfigSource


class SettingsAdminConfigSource(AdminConfigSource):
    """
    Privileged ids from the ADMIN_IDS setting.

    Settings are rebuilt on every call so edits to the environment or the
    .env file revoke or grant access without a restart.
    """

    def __init__(self, settings_factory: Callable[[], Settings] = Settings):
        self._settings_factory = settings_factory

    async def get_admin_ids(self) -> frozenset[str]:
        return self._settings_factory().admin_ids
