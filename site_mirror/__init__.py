"""Mirror a single web page into a self-contained static directory."""

from .config import MirrorConfig
from .errors import EntryFetchFailed
from .mirror import run_mirror

__all__ = ["EntryFetchFailed", "MirrorConfig", "run_mirror"]
