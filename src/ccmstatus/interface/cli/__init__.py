"""
CLI package for ccmstatus.
"""

from .cli import app, main

__all__ = ["app", "main"]
