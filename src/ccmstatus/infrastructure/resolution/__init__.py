"""Host name resolution."""

from .resolver import NameResolver

__all__ = ["NameResolver"]
