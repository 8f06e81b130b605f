"""Exception hierarchy for council sessions."""

from __future__ import annotations


class CouncilError(Exception):
    """Base class for every council error.

    Attributes:
        message: Human-readable error description.
        cause: Original exception that caused this error (optional).
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class ConfigurationError(CouncilError):
    """Invalid configuration or an operation issued in the wrong state."""


class SessionNotFoundError(CouncilError):
    """No council session is registered under the given id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class RemoteCallFailure(CouncilError):
    """A call to the remote agent gateway failed.

    Attributes:
        operation: Gateway operation that failed (spawn, send, list, terminate).
        target: Role, label or session handle the call was addressed to.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        target: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.operation = operation
        self.target = target


class PartialRosterFailure(CouncilError):
    """Some, but not all, agents of the roster could be spawned.

    The spawned sessions are left registered; ending the session releases them.
    """

    def __init__(self, spawned: list[str], failures: dict[str, BaseException]) -> None:
        failed = ", ".join(sorted(failures))
        super().__init__(
            f"{len(failures)} of {len(spawned) + len(failures)} agents failed to spawn: {failed}",
            cause=next(iter(failures.values()), None),
        )
        self.spawned = spawned
        self.failures = failures


class SilentAgentFailure(CouncilError):
    """One agent produced no usable reply; the round continues without it."""

    def __init__(self, role: str, reason: str) -> None:
        super().__init__(f"Agent {role} did not reply: {reason}")
        self.role = role
        self.reason = reason
