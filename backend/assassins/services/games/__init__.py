"""Game domain services: roster, choices, scoring and timers.

This package contains pure(ish) domain logic that should be imported by
socket handlers and HTTP routes, keeping transport concerns separated
from core game mechanics.
"""
