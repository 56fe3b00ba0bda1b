#!/usr/bin/env python3
"""
Exceptions raised by the Stellar Nursery core.
"""


class NurseryError(Exception):
    """Base class for simulation errors."""


class InvariantError(NurseryError):
    """A body broke a contract the core relies on (e.g. negative mass)."""


class NarrativeError(NurseryError):
    """A narrator failed to produce a description."""
