"""Shared utilities."""

from docscan.utils.logging_config import setup_logging

__all__ = ["setup_logging"]
