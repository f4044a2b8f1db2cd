"""
ivokan-slots - Resolve tutor availability into bookable lesson slots.
"""

__version__ = "0.1.0"
