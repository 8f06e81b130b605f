"""Small shared helpers."""

import time
import uuid
from pathlib import Path


def get_data_dir() -> Path:
    """Return ~/.council, creating it if needed."""
    path = Path.home() / ".council"
    path.mkdir(parents=True, exist_ok=True)
    return path


def new_id(prefix: str) -> str:
    """Build a unique id such as ``msg_1717171717171_3f9a0c1d2``."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def format_clock(seconds: int) -> str:
    """Format a second count as MM:SS."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{secs:02d}"
