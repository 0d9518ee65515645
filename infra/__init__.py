from __future__ import annotations

from typing import Protocol, Mapping, Any, Optional

from infra.http_client import HttpClient, HttpError, Params

# ========== 1) Port: services depend on this, not on the concrete HttpClient ==========
class HttpPort(Protocol):
    async def get_json(self, url: str, params: Optional[Params] = None) -> Any: ...
    async def post_json(self, url: str, json_body: Mapping[str, Any]) -> Any: ...
    async def get_text(self, url: str, params: Optional[Params] = None) -> str: ...


# ========== 2) Container: create / close ==========
class HttpContainer:
    """
    Owns the shared HttpClient.
    - The composition root (app entrypoint) holds it.
    - Services receive container.http.
    """
    def __init__(self, http: HttpClient) -> None:
        self.http = http

    @classmethod
    async def start(cls,
                    cfg: Mapping[str, Any],
                    logger=None,
                    ) -> "HttpContainer":
        http = HttpClient(cfg, logger)
        return cls(http)

    async def stop(self) -> None:
        await self.http.close()

    async def __aenter__(self) -> "HttpContainer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


__all__ = ["HttpPort", "HttpContainer", "HttpClient", "HttpError"]
