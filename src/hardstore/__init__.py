"""Hardstore: account lockout and session lifecycle for the store back office."""

__version__ = "0.1.0"
