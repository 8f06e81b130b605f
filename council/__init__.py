"""council - timed multi-agent council sessions with a human moderator."""

__version__ = "0.1.0"
__logo__ = "🏛️"
