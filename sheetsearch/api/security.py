"""
API key guard for endpoints that wipe persisted settings.
"""
import secrets
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from sheetsearch.core.config import settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_api_key(api_key: Optional[str] = Security(api_key_header)) -> None:
    """Open when SHEETSEARCH_API_KEY is unset, otherwise the X-API-Key header must match."""
    expected = settings.API_KEY
    if not expected:
        return
    if api_key is None or not secrets.compare_digest(api_key.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid API key")
