"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, AvailabilityStoreProtocol

__all__ = ["AvailabilityService", "AvailabilityStoreProtocol"]
