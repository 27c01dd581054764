import logging
import os
from typing import Any

import httpx
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

AUTH_SERVICE_URL = os.getenv("AUTH_SERVICE_URL", "http://auth-service:8001")

logger = logging.getLogger("feedback-service")

# Public paths that never look at the Authorization header
PUBLIC_PATHS = {
    "/health",
    "/docs",
    "/openapi.json",
}

# (method, path) pairs open to anonymous submitters
PUBLIC_ROUTES = {
    ("POST", "/feedback"),
    ("POST", "/feedback/"),
}


def _is_public_path(method: str, path: str) -> bool:
    if path in PUBLIC_PATHS or (method, path) in PUBLIC_ROUTES:
        return True
    # GET /forms/{form_id} is the public form link; GET /forms/ is the admin list
    if method == "GET" and path.startswith("/forms/"):
        return path.rstrip("/") != "/forms"
    return False


class AuthServiceUnavailable(Exception):
    pass


async def _verify_token(token: str) -> dict[str, Any] | None:
    """
    Verify token via auth-service.
    Returns {"sub", "email", "role"} or None when the token is rejected.
    """
    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            r = await client.post(f"{AUTH_SERVICE_URL.rstrip('/')}/auth/verify", json={"token": token})
    except httpx.RequestError as e:
        logger.error("Auth service error: %s", e)
        raise AuthServiceUnavailable(str(e)) from e

    if r.status_code != 200:
        return None

    try:
        payload = r.json()
    except ValueError as e:
        logger.error("Auth service returned a non-JSON body (%s)", r.headers.get("content-type"))
        raise AuthServiceUnavailable("Invalid auth service response") from e

    if isinstance(payload, dict) and isinstance(payload.get("user"), dict):
        payload = payload["user"]
    if not isinstance(payload, dict) or not payload.get("sub"):
        return None

    return {
        "sub": str(payload["sub"]),
        "email": str(payload.get("email") or ""),
        "role": str(payload.get("role") or ""),
    }


async def auth_middleware(request: Request, call_next):
    # Anonymous requests pass through; admin routes reject them later.
    request.state.user = None

    if request.method == "OPTIONS" or _is_public_path(request.method, request.url.path):
        return await call_next(request)

    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        return await call_next(request)

    if not auth_header.lower().startswith("bearer "):
        return JSONResponse(status_code=401, content={"detail": "Missing Bearer token"})

    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        return JSONResponse(status_code=401, content={"detail": "Missing token"})

    try:
        user = await _verify_token(token)
    except AuthServiceUnavailable:
        return JSONResponse(status_code=503, content={"detail": "Auth service unavailable"})

    if user is None:
        return JSONResponse(status_code=401, content={"detail": "Invalid token"})

    request.state.user = user
    return await call_next(request)


def current_user(request: Request) -> dict[str, Any] | None:
    return getattr(request.state, "user", None)


def require_admin(request: Request) -> dict[str, Any]:
    user = current_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
