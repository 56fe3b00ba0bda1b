"""
Stellar Nursery simulation package.

Hydrogen clouds collapse into classified stellar bodies which then gravitate,
capture each other into orbit, feed compact objects and merge. The package is
UI-agnostic; `stellar_nursery.py` at the repository root drives it with a
pygame viewport and a Dear PyGui control window.
"""
