"""Stateless proxy that adds the AI credential to forwarded requests.

Clients POST a completion body to ``/api/proxy``; the proxy relays it to the
configured endpoint with ``Authorization: Bearer <key>`` and hands back the
upstream status, body and content type unchanged. The key never leaves the
server.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from ..core.logging import null_logger

ENDPOINT_ENV = "AI_ENDPOINT"
API_KEY_ENV = "AI_API_KEY"
TIMEOUT_ENV = "QUIZME_PROXY_TIMEOUT"
PROXY_PATH = "/api/proxy"
DEFAULT_TIMEOUT = 60.0

_ALL_METHODS = [
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "HEAD",
    "OPTIONS",
    "TRACE",
    "CONNECT",
]


@dataclass(frozen=True)
class ProxySettings:
    """Upstream endpoint and credential read from the environment."""

    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.endpoint and self.api_key)

    @classmethod
    def from_env(
        cls, env: Optional[Mapping[str, str]] = None
    ) -> "ProxySettings":
        if env is None:
            load_dotenv()
            env = os.environ
        raw_timeout = (env.get(TIMEOUT_ENV) or "").strip()
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            timeout = DEFAULT_TIMEOUT
        return cls(
            endpoint=(env.get(ENDPOINT_ENV) or "").strip() or None,
            api_key=(env.get(API_KEY_ENV) or "").strip() or None,
            timeout=timeout,
        )


def create_app(
    settings: Optional[ProxySettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    logger: Optional[logging.Logger] = None,
) -> FastAPI:
    """Create the proxy application.

    Without explicit ``settings`` the environment is read on every request.
    """

    app = FastAPI(title="QuizMe AI Proxy")
    log = logger or null_logger("quizme.proxy")

    @app.api_route(PROXY_PATH, methods=_ALL_METHODS)
    async def proxy(request: Request) -> Response:
        try:
            if request.method != "POST":
                return JSONResponse(
                    {"error": "Method Not Allowed"},
                    status_code=405,
                    headers={"Allow": "POST"},
                )

            current = settings or ProxySettings.from_env()
            if not current.configured:
                return JSONResponse(
                    {"error": "API endpoint or API key not configured"},
                    status_code=500,
                )

            payload = await request.body()
            if not payload.strip():
                payload = b"{}"
            async with httpx.AsyncClient(
                timeout=current.timeout, transport=transport
            ) as client:
                upstream = await client.post(
                    str(current.endpoint),
                    content=payload,
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {current.api_key}",
                    },
                )
            log.info(
                "Relayed completion request",
                extra={
                    "status": upstream.status_code,
                    "request_bytes": len(payload),
                },
            )
            return Response(
                content=upstream.content,
                status_code=upstream.status_code,
                media_type=upstream.headers.get(
                    "content-type", "application/json"
                ),
            )
        except Exception:
            log.exception("Proxy error")
            return JSONResponse(
                {"error": "Proxy internal error"}, status_code=500
            )

    return app


def serve(
    host: str,
    port: int,
    *,
    settings: Optional[ProxySettings] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Run the proxy with uvicorn until interrupted."""

    app = create_app(settings, logger=logger)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
