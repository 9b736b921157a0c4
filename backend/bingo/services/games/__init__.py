"""Game domain services: card generation, scoring, round lifecycle and the
draw ticker.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""
