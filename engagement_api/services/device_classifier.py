import logging
from typing import Optional

from user_agents import parse as parse_user_agent

from ..schemas.event import DeviceType

logger = logging.getLogger(__name__)


def classify_device(user_agent: Optional[str]) -> DeviceType:
    """
    Coarse device category of a client signature.

    Phones (phone-class device families, mobile browsers, Android phones)
    are mobile; every other non-empty signature, tablets included, counts as
    desktop. A missing or blank signature is unknown.
    """
    if not user_agent or not user_agent.strip():
        return DeviceType.UNKNOWN

    try:
        parsed = parse_user_agent(user_agent)
        if parsed.is_mobile:
            return DeviceType.MOBILE
    except Exception:
        logger.debug("Unparseable user agent", extra={"user_agent": user_agent}, exc_info=True)

    return DeviceType.DESKTOP
