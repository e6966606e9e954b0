"""
Booking store factory.

Picks the store implementation named by the configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .local_store import LocalBookingStore
from .remote_store import RemoteBookingStore

if TYPE_CHECKING:  # pragma: no cover
    from ..config import AppConfig


def build_store(config: "AppConfig"):
    """
    Build the booking store described by ``config.store``.

    Args:
        config: Application configuration

    Returns:
        LocalBookingStore or RemoteBookingStore

    Raises:
        ValueError: If the backend is not supported
    """
    settings = config.store
    if settings.backend == "local":
        return LocalBookingStore(
            settings.path,
            seed_config=config.shop_config(),
            seed_services=config.seed_services(),
        )
    if settings.backend == "remote":
        return RemoteBookingStore(
            settings.base_url,
            api_key=settings.api_key,
            timeout=settings.timeout_seconds,
        )
    raise ValueError(f"Unsupported store backend: {settings.backend}")
