"""Cached git checkout for CI runners."""

__version__ = "0.1.0"
