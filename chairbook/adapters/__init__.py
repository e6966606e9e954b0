"""
Adapters layer - Booking storage backends.
"""

from .factory import build_store
from .local_store import LocalBookingStore
from .remote_store import RemoteBookingStore

__all__ = ["build_store", "LocalBookingStore", "RemoteBookingStore"]
