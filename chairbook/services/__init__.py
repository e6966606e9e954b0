"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import AgendaEntry, BookingService, BookingStoreProtocol, UnknownServiceError

__all__ = ["AgendaEntry", "BookingService", "BookingStoreProtocol", "UnknownServiceError"]
