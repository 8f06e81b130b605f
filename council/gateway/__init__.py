"""Remote agent gateway contract and its HTTP implementation."""

from council.gateway.base import (
    ByRole,
    BySessionHandle,
    RemoteAgentGateway,
    SendResult,
    SessionDescriptor,
    SessionTarget,
    SpawnedSession,
)
from council.gateway.http import HttpAgentGateway

__all__ = [
    "ByRole",
    "BySessionHandle",
    "HttpAgentGateway",
    "RemoteAgentGateway",
    "SendResult",
    "SessionDescriptor",
    "SessionTarget",
    "SpawnedSession",
]
