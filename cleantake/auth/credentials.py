"""Bearer-token resolution for the speech-to-text service.

WHY: The speech API needs an OAuth access token. Inside Google Cloud the
instance metadata server hands one out instantly; on a developer machine
there is no metadata server, but the gcloud CLI is logged in. Which of
the two works depends only on where the process runs, so both must be
tried before giving up.

HOW: Each way of getting a token is a strategy object with a `name` and
an async fetch_token(). CredentialResolver walks an ordered list of
strategies. A strategy signals "not available here" by raising
CredentialUnavailable with a reason; the resolver records the
(name, reason) pair and moves on. When every strategy has failed, the
collected attempts become one AuthError.

RULES:
- Default order: pinned env token (if set) → metadata server → gcloud CLI
- Metadata server: GET with `Metadata-Flavor: Google`, short timeout,
  non-200 / non-JSON / missing access_token all count as failure
- gcloud: stdout stripped; an empty command, an OS error starting the
  binary, non-zero exit, timeout, or empty output count as failure; the
  subprocess is killed on cancellation
- Only CredentialUnavailable is caught by the resolver; anything else
  is a bug and propagates
"""

from __future__ import annotations

import asyncio
import logging
import shlex

import httpx

from cleantake.config import (
    GCLOUD_COMMAND,
    GCLOUD_TIMEOUT_S,
    METADATA_TIMEOUT_S,
    METADATA_TOKEN_URL,
    load_static_token,
)
from cleantake.errors import AuthError, excerpt

logger = logging.getLogger(__name__)


class CredentialUnavailable(Exception):
    """A single strategy could not produce a token."""


class StaticTokenStrategy:
    """Return a token pinned in configuration (CI, local overrides)."""

    name = "static-token"

    def __init__(self, token: str) -> None:
        self._token = token

    async def fetch_token(self) -> str:
        if not self._token.strip():
            raise CredentialUnavailable("configured token is empty")
        return self._token.strip()


class MetadataServerStrategy:
    """Fetch a token from the cloud instance metadata server.

    RULES:
    - Sends the `Metadata-Flavor: Google` header (required by the server)
    - transport is for tests (httpx.MockTransport); None means real network
    """

    name = "metadata-server"

    def __init__(
        self,
        url: str = METADATA_TOKEN_URL,
        timeout_s: float = METADATA_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_s
        self._transport = transport

    async def fetch_token(self) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_s),
                transport=self._transport,
            ) as client:
                resp = await client.get(
                    self._url, headers={"Metadata-Flavor": "Google"}
                )
        except httpx.HTTPError as exc:
            raise CredentialUnavailable(
                "request failed: {}".format(str(exc) or type(exc).__name__)
            ) from exc

        if resp.status_code != 200:
            raise CredentialUnavailable(
                "HTTP {}: {}".format(resp.status_code, excerpt(resp.text, 200))
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise CredentialUnavailable("response body is not JSON") from exc

        token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token.strip():
            raise CredentialUnavailable("response did not contain access_token")
        return token.strip()


class GcloudCliStrategy:
    """Run the gcloud CLI and read the token from its stdout."""

    name = "gcloud-cli"

    def __init__(
        self,
        command: str = GCLOUD_COMMAND,
        timeout_s: float = GCLOUD_TIMEOUT_S,
    ) -> None:
        self._argv = shlex.split(command)
        self._timeout_s = timeout_s

    async def fetch_token(self) -> str:
        if not self._argv:
            raise CredentialUnavailable("no gcloud command configured")
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CredentialUnavailable(
                "cannot run {!r}: {}".format(self._argv[0], exc)
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout_s
            )
        except asyncio.TimeoutError as exc:
            _kill(proc)
            raise CredentialUnavailable(
                "timed out after {:.0f}s".format(self._timeout_s)
            ) from exc
        except asyncio.CancelledError:
            _kill(proc)
            raise

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", "replace")
            raise CredentialUnavailable(
                "exit status {}: {}".format(proc.returncode, excerpt(detail, 200))
            )

        token = stdout.decode("utf-8", "replace").strip()
        if not token:
            raise CredentialUnavailable("command returned an empty token")
        return token


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass


def default_strategies(
    transport: httpx.AsyncBaseTransport | None = None,
) -> list:
    """Build the standard strategy chain for this environment."""
    strategies: list = []
    static = load_static_token()
    if static:
        strategies.append(StaticTokenStrategy(static))
    strategies.append(MetadataServerStrategy(transport=transport))
    strategies.append(GcloudCliStrategy())
    return strategies


class CredentialResolver:
    """Try each strategy in order until one yields a token."""

    def __init__(self, strategies: list | None = None) -> None:
        self._strategies = list(strategies) if strategies is not None else default_strategies()

    async def get_access_token(self) -> str:
        """Return a bearer token or raise AuthError listing every failed attempt."""
        attempts: list[tuple[str, str]] = []
        for strategy in self._strategies:
            try:
                token = await strategy.fetch_token()
            except CredentialUnavailable as exc:
                logger.warning("Could not get access token via %s: %s", strategy.name, exc)
                attempts.append((strategy.name, str(exc)))
                continue
            logger.info("Obtained access token via %s.", strategy.name)
            return token

        if not attempts:
            raise AuthError("No credential strategies configured.", attempts=attempts)
        detail = "; ".join("{}: {}".format(name, reason) for name, reason in attempts)
        raise AuthError(
            "Failed to obtain a Google Cloud access token. Ensure the metadata "
            "server is reachable or gcloud is installed and authenticated "
            "({}).".format(detail),
            attempts=attempts,
        )
