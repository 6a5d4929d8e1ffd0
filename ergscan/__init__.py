"""Rowing ergometer screen OCR parser."""

__version__ = "0.1.0"
