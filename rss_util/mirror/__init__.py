"""
Data mirror - derived, regenerable copy of the store in a user-chosen directory.

Raw mode copies the collection files verbatim. Structured mode writes one
markdown document per feed, category, article and calendar event.
"""

from .engine import MirrorSyncEngine, MirrorSyncResult
from .text import html_to_text, sanitize_filename

__all__ = ["MirrorSyncEngine", "MirrorSyncResult", "html_to_text", "sanitize_filename"]
