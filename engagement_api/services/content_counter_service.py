import logging
import re
from typing import Dict, Mapping, Optional

from ..repositories.content_repository import ContentRepository
from ..schemas.event import ActionType, ContentType

logger = logging.getLogger(__name__)

COUNTER_BY_ACTION: Dict[ActionType, str] = {
    ActionType.VIEW: "view_count",
    ActionType.CLICK: "click_count",
}

_EXTERNAL_ID = re.compile(r"\s*(\d+)\s*")
# tmdb_id is an int4 column
MAX_EXTERNAL_ID = 2**31 - 1


def parse_external_id(content_id: str) -> Optional[int]:
    match = _EXTERNAL_ID.fullmatch(content_id or "")
    if not match:
        return None
    external_id = int(match.group(1))
    return external_id if external_id <= MAX_EXTERNAL_ID else None


class ContentCounterService:
    def __init__(self, repositories: Mapping[ContentType, ContentRepository]):
        missing = set(ContentType) - set(repositories)
        if missing:
            raise ValueError(f"No content repository for: {sorted(m.value for m in missing)}")
        self.repositories = dict(repositories)

    async def apply(self, content_type: ContentType, content_id: str, action_type: ActionType) -> None:
        """
        Fold one event into the catalog item's counters.

        Runs detached from the request: a malformed id or a catalog miss is a
        silent skip, and any database error is logged here and dropped.
        """
        try:
            external_id = parse_external_id(content_id)
            if external_id is None:
                logger.debug("Skipping counters for non-numeric content id", extra={"content_id": content_id})
                return

            repo = self.repositories[ContentType(content_type)]
            content = await repo.find_by_external_id(external_id)
            if content is None:
                logger.debug(
                    "Content not in catalog, counters unchanged",
                    extra={"content_id": content_id, "content_type": ContentType(content_type).value}
                )
                return

            column = COUNTER_BY_ACTION.get(ActionType(action_type))
            if column is None:
                return

            new_value = await repo.increment_counter(external_id, column)
            logger.debug(
                "Content counter incremented",
                extra={"content_id": content_id, "counter": column, "value": new_value}
            )
        except Exception:
            logger.exception(
                "Error updating content counters",
                extra={"content_id": content_id, "action_type": str(action_type)}
            )
