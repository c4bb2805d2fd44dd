"""Fetch the FFESSM MFT document bundle through a real browser."""

__version__ = "0.1.0"
