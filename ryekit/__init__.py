"""Helpers for Python project management: requirements, versions, config, scripts, shims, shells and publishing."""

__version__ = "0.1.0"