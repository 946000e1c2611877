"""Shared and per-release Python virtualenv management for deployments."""

__version__ = "0.1.0"
