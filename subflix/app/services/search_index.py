from __future__ import annotations

from subflix.app.domain.models import Subtitle, SubtitleStatus
from subflix.app.infra.db.base import SubtitleStore


class SearchIndex:
    """Stateless substring filter over the approved partition."""

    def __init__(self, store: SubtitleStore):
        self._store = store

    async def query(self, text: str = "") -> list[Subtitle]:
        """
        Approved subtitles whose title or uploader name contains `text`,
        case-insensitively. Empty text returns the whole approved set in the
        order the store listed it.
        """
        approved = await self._store.list(SubtitleStatus.APPROVED)
        if not text:
            return approved

        needle = text.casefold()
        return [
            subtitle
            for subtitle in approved
            if needle in subtitle.title.casefold() or needle in subtitle.uploader_name.casefold()
        ]
