"""
Token checks for the session monitor routes.

API_TOKEN guards the read-only session monitor routes and METRICS_TOKEN
guards the Prometheus scrape endpoint. Either check is skipped while its
token is unset, which the production settings validator refuses. Clients
send the token as X-API-Key or as an Authorization Bearer value; X-API-Key
wins when both are present.
"""

from fastapi import Header, HTTPException, status

from ..config import settings


def _extract_token(authorization: str | None, x_api_key: str | None) -> str | None:
    if x_api_key:
        return x_api_key.strip()
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    return None


def require_api_token(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
) -> None:
    """Reject session monitor requests without the API token, when one is set."""
    if not settings.api_token:
        return
    token = _extract_token(authorization, x_api_key)
    if token != settings.api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def require_metrics_token(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
) -> None:
    """Reject metrics scrapes without the metrics token, when one is set."""
    if not settings.metrics_token:
        return
    token = _extract_token(authorization, x_api_key)
    if token != settings.metrics_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
