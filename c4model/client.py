# c4model/client.py
"""Async client for pushing workspaces to, and pulling them from, a workspace API.

Example:
    ```python
    config = ClientConfig.from_env()
    async with WorkspaceClient(config) as client:
        workspace = await client.get_workspace(1234)
        await client.put_workspace(1234, workspace)
    ```
"""
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import httpx

from .auth import signed_headers
from .constants import DEFAULT_API_URL, USER_AGENT, WORKSPACE_PATH
from .encryption import AesEncryptionStrategy, decrypt_workspace, dumps_encrypted, is_encrypted
from .serialize import dumps, workspace_from_dict
from .workspace import Workspace

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)


class WorkspaceClientError(Exception):
    """A workspace could not be fetched or stored."""


@dataclass(frozen=True)
class ClientConfig:
    api_key: str
    api_secret: str
    url: str = DEFAULT_API_URL
    timeout_seconds: float = 30.0
    merge_from_remote: bool = True
    archive_dir: Optional[Path] = None
    encryption: Optional[AesEncryptionStrategy] = None

    @classmethod
    def from_env(cls, **overrides: object) -> ClientConfig:
        """Read C4MODEL_API_URL, C4MODEL_API_KEY and C4MODEL_API_SECRET.

        When C4MODEL_PASSPHRASE is set, workspaces are encrypted with a fresh
        `AesEncryptionStrategy` unless `encryption` is passed explicitly.
        """
        api_key = os.environ.get("C4MODEL_API_KEY", "")
        api_secret = os.environ.get("C4MODEL_API_SECRET", "")
        if not api_key or not api_secret:
            raise ValueError("C4MODEL_API_KEY and C4MODEL_API_SECRET must be set")
        url = os.environ.get("C4MODEL_API_URL") or DEFAULT_API_URL
        passphrase = os.environ.get("C4MODEL_PASSPHRASE")
        if passphrase and "encryption" not in overrides:
            overrides["encryption"] = AesEncryptionStrategy(passphrase=passphrase)
        return cls(api_key=api_key, api_secret=api_secret, url=url, **overrides)  # type: ignore[arg-type]


def _check_workspace(workspace_id: int, workspace: Optional[Workspace]) -> None:
    if workspace is None:
        raise ValueError("A workspace must be supplied")
    if workspace_id <= 0:
        raise ValueError("The workspace ID must be set")


def _nonce() -> str:
    return str(int(time.time() * 1000))


class WorkspaceClient:
    """Signs and sends workspace API requests over a shared httpx.AsyncClient.

    `transport` is passed straight to httpx, so tests can use
    `httpx.MockTransport`.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def connect(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_seconds),
            transport=self._transport,
        )
        logger.debug("WorkspaceClient connected to %s", self._config.url)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> WorkspaceClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _send(self, method: str, workspace_id: int, body: str = "") -> httpx.Response:
        if self._client is None:
            await self.connect()
        assert self._client is not None

        path = f"{WORKSPACE_PATH}{workspace_id}"
        headers = signed_headers(
            api_key=self._config.api_key,
            api_secret=self._config.api_secret,
            method=method,
            path=path,
            body=body,
            nonce=_nonce(),
            user_agent=USER_AGENT,
        )
        url = self._config.url.rstrip("/") + path
        response = await self._client.request(method, url, content=body.encode("utf-8"), headers=headers)
        response.raise_for_status()
        return response

    async def get_workspace(self, workspace_id: int) -> Workspace:
        try:
            response = await self._send("GET", workspace_id)
            text = response.text
            if self._config.archive_dir is not None:
                self.archive_workspace(workspace_id, text)
            return self._read_workspace(text)
        except (httpx.HTTPError, ValueError, KeyError, TypeError, OSError) as e:
            raise WorkspaceClientError(f"There was an error getting the workspace: {e}") from e

    async def put_workspace(self, workspace_id: int, workspace: Workspace) -> None:
        """Store `workspace`, first copying layout from the remote copy when configured."""
        _check_workspace(workspace_id, workspace)

        if self._config.merge_from_remote:
            await self.merge_from_remote(workspace_id, workspace)

        workspace.id = workspace_id
        try:
            await self._send("PUT", workspace_id, self._write_workspace(workspace))
        except httpx.HTTPError as e:
            raise WorkspaceClientError(f"There was an error putting the workspace: {e}") from e
        logger.info("stored workspace %d", workspace_id)

    async def merge_from_remote(self, workspace_id: int, workspace: Workspace) -> None:
        remote = await self.get_workspace(workspace_id)
        workspace.copy_layout_information_from(remote)
        logger.debug("merged layout from remote workspace %d", workspace_id)

    def _read_workspace(self, text: str) -> Workspace:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse workspace JSON: {e}") from e
        if not is_encrypted(data):
            return workspace_from_dict(data)

        encryption = self._config.encryption
        if encryption is None or not encryption.passphrase:
            raise ValueError("The workspace is encrypted but no passphrase is configured")
        return decrypt_workspace(data, encryption.passphrase)

    def _write_workspace(self, workspace: Workspace) -> str:
        if self._config.encryption is None:
            return dumps(workspace)
        return dumps_encrypted(workspace, self._config.encryption)

    def archive_workspace(self, workspace_id: int, workspace_json: str) -> Path:
        """Write the raw JSON to `archive_dir` under a timestamped name."""
        assert self._config.archive_dir is not None
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        path = self._config.archive_dir / f"c4model-{workspace_id}-{stamp}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(workspace_json, encoding="utf-8")
        logger.debug("archived workspace %d to %s", workspace_id, path)
        return path
