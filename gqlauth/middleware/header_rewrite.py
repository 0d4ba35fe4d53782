"""Normalise ``Authorization: JWT <jwt>`` to ``Authorization: Bearer <accessToken>``.

Downstream handlers that only understand opaque bearer tokens then see the
access token wrapped by the JWT. Any header that cannot be resolved is passed
through untouched; authentication itself still happens in the handlers.
"""
from typing import Callable, List, Optional, Tuple

from fastapi import Request, Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from gqlauth.api.deps import build_token_service
from gqlauth.services.credentials import JWT, find_credential

AUTHORIZATION = b"authorization"


def _has_jwt_scheme(values: List[str]) -> bool:
    credential = find_credential(values)
    return credential is not None and credential[0] == JWT


class HeaderRewriteMiddleware(BaseHTTPMiddleware):
    """Rewrites JWT credentials into Bearer form before routing"""

    def __init__(self, app: ASGIApp, session_factory: Callable[[], Session]) -> None:
        super().__init__(app)
        self.session_factory = session_factory

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        values = request.headers.getlist("authorization")
        if values and _has_jwt_scheme(values):
            rewritten = await run_in_threadpool(self._rewrite, values)
            if rewritten is not None:
                headers: List[Tuple[bytes, bytes]] = [
                    (name, value) for name, value in request.scope["headers"] if name != AUTHORIZATION
                ]
                headers.append((AUTHORIZATION, rewritten.encode("latin-1")))
                request.scope["headers"] = headers

        return await call_next(request)

    def _rewrite(self, values: List[str]) -> Optional[str]:
        db = self.session_factory()
        try:
            return build_token_service(db).extractor.rewrite_header(values)
        finally:
            db.close()
