"""Observer channels for council sessions."""

from council.channels.base import BaseChannel
from council.channels.manager import ChannelManager

__all__ = ["BaseChannel", "ChannelManager"]
