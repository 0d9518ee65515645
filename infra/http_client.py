# infra/http_client.py
from __future__ import annotations

import aiohttp
import asyncio
import json
import random
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode

from utils.logger import logger

JSON_SEPARATORS = (",", ":")

Params = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]


class HttpError(Exception):
    def __init__(self, status: int, message: str, payload: Optional[dict] = None):
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.payload = payload or {}


def _json_dumps_compact(obj: Any) -> str:
    return json.dumps(obj, separators=JSON_SEPARATORS, ensure_ascii=False)

def _build_query(params: Optional[Params]) -> str:
    if not params:
        return ""
    return "?" + urlencode(params, doseq=True, safe=":/")

def _retryable(status: int) -> bool:
    return status == 429 or status >= 500


class HttpClient:
    """
    Shared JSON client for the swap-status service and the chain indexers.
    One aiohttp session, exponential backoff on 429/5xx and network errors.
    """

    def __init__(self,
                 cfg: Mapping[str, Any],
                 logger_=None,
                 *,
                 timeout_ms: Optional[int] = None,
                 session: Optional[aiohttp.ClientSession] = None,
                 ) -> None:
        self.cfg = cfg
        self.log = logger_ or logger.bind(component="HttpClient")
        self.session = session
        self._owned_session = session is None

        timeouts_cfg = cfg.get("timeouts", {}) or {}
        retries_cfg = cfg.get("retries", {}) or {}
        self.timeout_ms = int(timeout_ms or timeouts_cfg.get("rest_ms", 5000))
        self.max_attempts = int(retries_cfg.get("rest_max_attempts", 3))
        self.backoff_ms = int(retries_cfg.get("backoff_ms", 200))

        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000)
            self.session = aiohttp.ClientSession(timeout=timeout, raise_for_status=False, trust_env=True)

        self.log.debug(
            f"HttpClient init timeout_ms={self.timeout_ms} max_attempts={self.max_attempts}"
        )

    # ---- async context manager ----------------------------------------------------
    async def __aenter__(self) -> "HttpClient":
        if self._owned_session and (self.session is None or self.session.closed):
            timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000.0)
            self.session = aiohttp.ClientSession(timeout=timeout, raise_for_status=False, trust_env=True)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owned_session and self.session is not None and not self.session.closed:
            await self.session.close()

    async def request(
            self,
            method: str,
            url: str,
            *,
            params: Optional[Params] = None,
            json_body: Optional[Mapping[str, Any]] = None,
            headers: Optional[Mapping[str, str]] = None,
            expect_json: bool = True,
            timeout_ms: Optional[int] = None,
            retry: bool = True,
        ) -> Any:
        """
        Single request entrypoint.
        - url: absolute URL, query string is built from params
        - params: mapping or list of pairs (repeated keys allowed)
        - json_body: serialized compactly and sent as the request body
        - expect_json: parse the body as JSON, otherwise return the raw text
        - retry: exponential backoff on 429/5xx and network errors
        """
        assert url.startswith(("http://", "https://")), "url must be absolute"
        full_url = url + _build_query(params)
        body = _json_dumps_compact(json_body) if json_body is not None else None
        req_headers = {"Content-Type": "application/json", "Accept": "application/json", **(headers or {})}
        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000.0) if timeout_ms else None

        max_attempts = self.max_attempts if retry else 1
        for attempt in range(1, max_attempts + 1):
            last = attempt == max_attempts
            try:
                status, text = await self._send_once(method.upper(), full_url, body, req_headers, timeout)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if last:
                    raise HttpError(599, f"Network error: {e}") from e
                self.log.warning(f"Network error: {e} when requesting {full_url}, retrying...")
                await self._sleep_backoff(attempt)
                continue

            if status >= 400:
                if _retryable(status) and not last:
                    self.log.debug(f"HTTP {status} from {full_url}, attempt {attempt}/{max_attempts}")
                    await self._sleep_backoff(attempt)
                    continue
                raise HttpError(status, text[:256])

            if not expect_json:
                return text
            try:
                return json.loads(text) if text else {}
            except json.JSONDecodeError:
                raise HttpError(status, f"invalid json: {text[:256]}")

    async def _send_once(self, method: str, url: str, body: Optional[str],
                         headers: Mapping[str, str], timeout: Optional[aiohttp.ClientTimeout]) -> Tuple[int, str]:
        extra: Dict[str, Any] = {"timeout": timeout} if timeout is not None else {}
        async with self.session.request(method, url, data=body, headers=headers, **extra) as resp:
            return resp.status, await resp.text()

    async def _sleep_backoff(self, attempt: int) -> None:
        base = self.backoff_ms * (2 ** (attempt - 1))
        jitter = random.randint(0, self.backoff_ms)
        await asyncio.sleep((base + jitter) / 1000.0)

    # ---- convenience wrappers -----------------------------------------------------
    async def get_json(self, url: str, params: Optional[Params] = None) -> Any:
        return await self.request("GET", url, params=params, expect_json=True)

    async def post_json(self, url: str, json_body: Mapping[str, Any]) -> Any:
        return await self.request("POST", url, json_body=json_body, expect_json=True)

    async def get_text(self, url: str, params: Optional[Params] = None) -> str:
        return await self.request("GET", url, params=params, expect_json=False)
