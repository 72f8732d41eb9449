# src/__init__.py — v1
"""AMRSP: automated multilingual research submission processing."""

from amrsp.version import __version__

__all__ = ["__version__"]
