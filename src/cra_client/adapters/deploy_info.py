"""Deploy-info fetch for the build parity gate."""

from __future__ import annotations

import asyncio
import json
import logging

import httpx

from ..config import Config
from ..core.errors import ParityError, ParityErrorKind
from ..core.parity import DeployInfo, ParityResult, evaluate_parity, parse_deploy_info

logger = logging.getLogger(__name__)


def deploy_info_url(app_url: str) -> str:
    """``{app_url}/api/admin/deploy-info`` with query and fragment dropped."""
    url = httpx.URL(app_url.split("#", 1)[0])
    path = url.raw_path.split(b"?", 1)[0].rstrip(b"/") + Config.DEPLOY_INFO_PATH.encode("ascii")
    return str(url.copy_with(raw_path=path))


class HttpBuildParityChecker:
    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = Config.DEPLOY_INFO_TIMEOUT,
    ):
        self._transport = transport
        self._timeout = timeout

    async def fetch(self, app_url: str) -> DeployInfo:
        url = deploy_info_url(app_url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await asyncio.wait_for(
                    client.get(url, headers={"Accept": "application/json"}), self._timeout
                )
                response.raise_for_status()
        except asyncio.TimeoutError as e:
            raise ParityError(
                ParityErrorKind.FETCH_FAILED,
                url,
                f"Deploy info request to {url} did not complete within {self._timeout:.1f}s.",
            ) from e
        except httpx.HTTPStatusError as e:
            raise ParityError(
                ParityErrorKind.FETCH_FAILED,
                url,
                f"Deploy info request to {url} failed with status {e.response.status_code}.",
            ) from e
        except httpx.HTTPError as e:
            raise ParityError(
                ParityErrorKind.FETCH_FAILED,
                url,
                f"Could not fetch deploy info from {url}: {e}",
            ) from e

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParityError(
                ParityErrorKind.MALFORMED_RESPONSE,
                url,
                f"Deploy info at {url} is not valid JSON.",
            ) from e
        return parse_deploy_info(payload, url)

    async def check(self, url: str, min_hash: str | None, enforce: bool) -> ParityResult:
        target = deploy_info_url(url)
        try:
            info = await self.fetch(url)
        except ParityError as e:
            logger.warning("Build parity check failed: %s", e)
            return evaluate_parity(None, min_hash, target, fetch_error=e)
        result = evaluate_parity(info, min_hash, target)
        if not result.ok:
            level = logging.ERROR if enforce else logging.WARNING
            logger.log(level, "%s", result.error)
        return result
