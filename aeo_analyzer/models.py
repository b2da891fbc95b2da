from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from .db import Base

STATUS_PENDING = 'pending'
STATUS_PROCESSING = 'processing'
STATUS_COMPLETED = 'completed'
STATUS_FAILED = 'failed'


def _uuid() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Audit(Base):
    __tablename__ = 'audits'
    id = Column(String(32), primary_key=True, default=_uuid)
    url = Column(String(2048), nullable=False)
    query = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default=STATUS_PENDING, index=True)

    overall_score = Column(Integer, nullable=True)
    module_scores = Column(JSON, nullable=True)
    rule_results = Column(JSON, nullable=True)

    query_fit_score = Column(Integer, nullable=True)
    answer_draft = Column(Text, nullable=True)
    suggested_faqs = Column(JSON, nullable=True)

    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    page_extract = relationship('PageExtract', back_populates='audit', uselist=False, cascade='all,delete')


class PageExtract(Base):
    __tablename__ = 'page_extracts'
    id = Column(Integer, primary_key=True)
    audit_id = Column(String(32), ForeignKey('audits.id'), unique=True, nullable=False)
    fetch_type = Column(String(16), default='raw')

    title = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    canonical = Column(String(2048), nullable=True)
    h1 = Column(Text, nullable=True)
    headings = Column(JSON)
    main_text = Column(Text)
    top_text = Column(Text)
    word_count = Column(Integer, default=0)
    lists_count = Column(Integer, default=0)
    tables_count = Column(Integer, default=0)
    internal_links_count = Column(Integer, default=0)
    external_links_count = Column(Integer, default=0)
    external_links = Column(JSON)
    json_ld = Column(JSON)
    robots_meta = Column(Text, nullable=True)
    response_headers = Column(JSON)
    link_density = Column(Float, default=0.0)
    sentence_stats = Column(JSON)
    warnings = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now)

    audit = relationship('Audit', back_populates='page_extract')


class UsageEvent(Base):
    __tablename__ = 'usage_events'
    id = Column(Integer, primary_key=True)
    ip_hash = Column(String(64), nullable=False, index=True)
    domain = Column(String(255), nullable=False, index=True)
    path = Column(String(2048), nullable=True)
    audit_id = Column(String(32), ForeignKey('audits.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)
