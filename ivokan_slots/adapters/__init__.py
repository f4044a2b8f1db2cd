"""
Adapters layer - Availability storage backends.
"""

from .file_store import FileAvailabilityStore, InMemoryAvailabilityStore, TutorAvailability

__all__ = ["FileAvailabilityStore", "InMemoryAvailabilityStore", "TutorAvailability"]
