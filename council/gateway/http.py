"""Gateway client for the agent-hosting service's tool-invocation HTTP API."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from council.agents.persona import Persona, build_system_prompt
from council.errors import ConfigurationError, RemoteCallFailure
from council.gateway.base import (
    ByRole,
    BySessionHandle,
    RemoteAgentGateway,
    SendResult,
    SessionDescriptor,
    SessionTarget,
    SpawnedSession,
)

DEFAULT_MODELS = {
    "opus": "anthropic/claude-opus-4-20250514",
    "sonnet": "anthropic/claude-sonnet-4-20250514",
}


class HttpAgentGateway(RemoteAgentGateway):
    """
    Async client for ``POST /tools/invoke``.

    Every operation is a tool call (``sessions_spawn``, ``sessions_send``,
    ``sessions_list``) answered with ``{"ok": ..., "result": {"details": ...}}``.
    Spawned sessions are labelled ``<label_prefix>-<role>`` so they can be
    addressed by role as well as by handle.

    A single httpx.AsyncClient is created lazily and shared by all calls.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None,
        models: dict[str, str] | None = None,
        spawn_timeout_seconds: int = 1800,
        send_timeout_seconds: int = 60,
        request_timeout: float = 90.0,
        label_prefix: str = "council",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not token:
            raise ConfigurationError("A gateway token is required (gateway.token in config)")
        self.base_url = base_url.rstrip("/")
        self.models = {**DEFAULT_MODELS, **(models or {})}
        self.spawn_timeout_seconds = spawn_timeout_seconds
        self.send_timeout_seconds = send_timeout_seconds
        self.request_timeout = request_timeout
        self.label_prefix = label_prefix
        self._token = token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._labels: dict[str, str] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.request_timeout,
                headers={"Authorization": f"Bearer {self._token}"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def label_for(self, role: str) -> str:
        return f"{self.label_prefix}-{role}"

    async def _invoke(self, tool: str, args: dict[str, Any], target: str | None = None) -> Any:
        """Run one tool call and return its ``result`` payload."""
        try:
            response = await self._get_client().post("/tools/invoke", json={"tool": tool, "args": args})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RemoteCallFailure(tool, f"{tool} request failed: {e}", target=target, cause=e) from e

        if not data.get("ok"):
            raise RemoteCallFailure(tool, data.get("error") or f"{tool} was rejected", target=target)
        return data.get("result")

    async def spawn_session(
        self,
        role: str,
        persona: Persona,
        context_prompt: str | None = None,
    ) -> SpawnedSession:
        label = self.label_for(role)
        result = await self._invoke(
            "sessions_spawn",
            {
                "task": build_system_prompt(persona, context_prompt),
                "label": label,
                "model": self.models.get(persona.model, self.models["sonnet"]),
                "timeoutSeconds": self.spawn_timeout_seconds,
            },
            target=role,
        )
        details = (result or {}).get("details") or {}
        handle = details.get("childSessionKey")
        if not handle:
            raise RemoteCallFailure("sessions_spawn", "No session key returned from spawn", target=role)

        self._labels[label] = handle
        logger.info("Spawned session for {} ({})", role, label)
        return SpawnedSession(handle=handle, status="active", run_id=details.get("runId"))

    async def send_message(self, target: SessionTarget, text: str) -> SendResult:
        if isinstance(target, ByRole):
            label = self.label_for(target.role)
            address: dict[str, str] = {"label": label}
            name = label
        else:
            label = None
            address = {"sessionKey": target.handle}
            name = target.handle

        try:
            result = await self._invoke(
                "sessions_send",
                {**address, "message": text, "timeoutSeconds": self.send_timeout_seconds},
                target=name,
            )
        except RemoteCallFailure as e:
            logger.warning("Failed to send message to {}: {}", name, e)
            return SendResult(success=False, error=e.message)

        details = (result or {}).get("details") or {}
        returned = details.get("sessionKey")
        if label and returned:
            self._labels[label] = returned
        return SendResult(success=True, reply=details.get("reply"), session_handle=returned)

    async def list_sessions(self, limit: int = 10) -> list[SessionDescriptor]:
        try:
            result = await self._invoke("sessions_list", {"limit": limit})
        except RemoteCallFailure as e:
            logger.error("Failed to list sessions: {}", e)
            return []

        if isinstance(result, dict):
            result = result.get("sessions") or (result.get("details") or {}).get("sessions") or []
        sessions = []
        for item in result or []:
            if not isinstance(item, dict):
                continue
            handle = item.get("sessionKey") or item.get("key")
            if not handle:
                continue
            extra = {k: v for k, v in item.items() if k not in ("sessionKey", "key", "label")}
            sessions.append(SessionDescriptor(handle=handle, label=item.get("label"), extra=extra))
        return sessions

    async def terminate_session(self, target: SessionTarget) -> None:
        # The service has no terminate tool; sessions expire on their spawn timeout.
        if isinstance(target, ByRole):
            self._labels.pop(self.label_for(target.role), None)
            name = self.label_for(target.role)
        else:
            for label, handle in list(self._labels.items()):
                if handle == target.handle:
                    del self._labels[label]
            name = target.handle
        logger.info("Session {} released; it will time out on the gateway", name)
