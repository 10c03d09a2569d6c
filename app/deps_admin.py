# app/deps_admin.py
import secrets

from fastapi import Header, HTTPException, status

from app.config import settings


def require_admin_key(x_api_key: str | None = Header(default=None)) -> None:
    """
    Protegge le rotte /admin/* con l'header X-Api-Key.
    Se ADMIN_API_KEY non è configurata (dev/test) l'accesso è libero.
    """
    expected = settings.admin_api_key
    if not expected:
        return

    if not x_api_key or not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key admin non valida.",
        )
