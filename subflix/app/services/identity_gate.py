from __future__ import annotations

import logging
from typing import Optional

from subflix.app.infra.db.base import AdminConfigSource

logger = logging.getLogger(__name__)


class IdentityGate:
    """Answers whether an identity may moderate submissions."""

    def __init__(self, source: AdminConfigSource):
        self._source = source

    async def is_admin(self, identity: Optional[object]) -> bool:
        """
        Membership test against the privileged set, read fresh on every call.

        Identities are compared as strings, so numeric and text ids match.
        """
        if identity is None:
            return False
        key = str(identity).strip()
        if not key:
            return False

        admin_ids = await self._source.get_admin_ids()
        allowed = key in admin_ids
        logger.debug("Admin check: identity=%s, allowed=%s", key, allowed)
        return allowed
