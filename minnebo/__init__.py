"""Minnebo: mystic chat proxy with abuse mitigation."""

__version__ = "1.0.0"
