"""Abuse-guard helpers: privacy-preserving IP hashing and usage tracking.

Raw client IPs are never stored or logged, only their salted SHA-256 digest.
"""
from __future__ import annotations

import hashlib
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional
from urllib.parse import urlparse

from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import UsageEvent

logger = logging.getLogger(__name__)

_HOST_PREFIX = re.compile(r'^(?:https?://)?([^/:?]+)', re.I)
LOCAL_IP = '127.0.0.1'


def hash_ip(ip: str, salt: str = '') -> str:
    return hashlib.sha256((ip + salt).encode('utf-8')).hexdigest()


def _parse_absolute(url: str):
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        return None
    if not parsed.scheme or not host:
        return None
    return parsed


def extract_domain(url: str) -> str:
    parsed = _parse_absolute(url)
    if parsed is not None:
        return parsed.hostname.lower()
    m = _HOST_PREFIX.match(url.strip())
    return m.group(1).lower() if m else 'unknown'


def extract_path(url: str) -> Optional[str]:
    parsed = _parse_absolute(url)
    if parsed is None:
        return None
    return parsed.path or '/'


def client_ip(headers: Mapping[str, str]) -> str:
    forwarded = headers.get('x-forwarded-for')
    if forwarded:
        first = forwarded.split(',')[0].strip()
        if first:
            return first
    real_ip = (headers.get('x-real-ip') or '').strip()
    return real_ip or LOCAL_IP


def record_usage_event(db: Session, ip_hash: str, domain: str, path: Optional[str] = None,
                       audit_id: Optional[str] = None) -> UsageEvent:
    event = UsageEvent(ip_hash=ip_hash, domain=domain, path=path or None, audit_id=audit_id)
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Usage recorded for domain %s (ip %s...)", domain, ip_hash[:8])
    return event


def cleanup_old_usage_events(db: Session, days_to_keep: int = 7) -> int:
    cutoff = datetime.now(timezone.utc) - timedelta(days=days_to_keep)
    stmt = (
        delete(UsageEvent)
        .where(UsageEvent.created_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.commit()
    count = result.rowcount or 0
    logger.info("Cleaned up %d old usage events", count)
    return count
