"""Admin surface: user listing, edits, deletion, role catalog and account sync."""

from .router import router

__all__ = ["router"]
