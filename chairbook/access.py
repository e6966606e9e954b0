"""
PIN check gating privileged shop actions.
"""

import hmac
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def pin_authorizer(configured_pin: Optional[str], supplied_pin: Optional[str]) -> Callable[[], bool]:
    """
    Build the authorisation predicate handed to ``BookingService``.

    A shop without a configured PIN authorises nobody.
    """
    def is_authorized() -> bool:
        if not configured_pin:
            logger.warning("No admin PIN configured; privileged actions are disabled")
            return False
        if not supplied_pin:
            return False
        return hmac.compare_digest(configured_pin.encode("utf-8"), supplied_pin.encode("utf-8"))

    return is_authorized
