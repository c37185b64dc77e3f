"""Learning path progression and entitlement engine for the Phazur platform."""

__version__ = "0.1.0"
