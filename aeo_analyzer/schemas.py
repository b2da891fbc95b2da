from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

INVALID_URL = 'Please enter a valid URL'


class AuditRequest(BaseModel):
    url: str
    query: Optional[str] = None

    @field_validator('url')
    @classmethod
    def _valid_url(cls, v: str) -> str:
        v = v.strip()
        try:
            parsed = urlparse(v)
            host = parsed.hostname
        except ValueError:
            raise ValueError(INVALID_URL)
        if parsed.scheme not in ('http', 'https') or not host:
            raise ValueError(INVALID_URL)
        return v

    @field_validator('query')
    @classmethod
    def _blank_query(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None
