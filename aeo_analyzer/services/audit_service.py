"""Runs one audit end to end and persists every step."""
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from ..audit.extractor import PageExtraction, extract_content
from ..audit.fetcher import FetchError, FetchResult
from ..audit.query import analyze_query
from ..audit.scoring import format_module_scores, score_extraction
from ..config import Settings, get_settings
from ..guards import extract_domain, extract_path, hash_ip, record_usage_event
from ..models import (
    STATUS_COMPLETED, STATUS_FAILED, STATUS_PENDING, STATUS_PROCESSING, Audit, PageExtract,
)

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[FetchResult]]


class AuditPipelineError(Exception):
    pass


class AuditFailed(Exception):
    """The pipeline failed; the Audit row is already stored with status=failed."""

    def __init__(self, audit: Audit, message: str):
        super().__init__(message)
        self.audit = audit
        self.message = message


def page_extract_from(audit_id: str, extraction: PageExtraction) -> PageExtract:
    return PageExtract(
        audit_id=audit_id,
        fetch_type=extraction.fetch_type,
        title=extraction.title,
        description=extraction.description,
        canonical=extraction.canonical,
        h1=extraction.h1,
        headings=[asdict(h) for h in extraction.headings],
        main_text=extraction.main_text,
        top_text=extraction.top_text,
        word_count=extraction.word_count,
        lists_count=extraction.lists_count,
        tables_count=extraction.tables_count,
        internal_links_count=extraction.internal_links_count,
        external_links_count=extraction.external_links_count,
        external_links=list(extraction.external_links),
        json_ld=[asdict(ld) for ld in extraction.json_ld],
        robots_meta=extraction.robots_meta,
        response_headers=dict(extraction.response_headers),
        link_density=extraction.link_density,
        sentence_stats=asdict(extraction.sentence_stats),
        warnings=list(extraction.warnings) or None,
    )


class AuditService:
    def __init__(self, db: Session, fetcher: Fetcher, settings: Optional[Settings] = None):
        self.db = db
        self.fetcher = fetcher
        self.settings = settings or get_settings()

    def _set_status(self, audit: Audit, status: str, **fields) -> None:
        audit.status = status
        for key, value in fields.items():
            setattr(audit, key, value)
        self.db.commit()

    async def run(self, url: str, query: Optional[str], client_ip: str):
        """Returns (audit, warnings). Raises AuditFailed after storing the failure."""
        ip_hash = hash_ip(client_ip, self.settings.IP_HASH_SALT)
        domain = extract_domain(url)
        event = record_usage_event(self.db, ip_hash, domain, extract_path(url))

        audit = Audit(url=url, query=query or None, status=STATUS_PENDING)
        self.db.add(audit)
        self.db.commit()
        event.audit_id = audit.id
        self._set_status(audit, STATUS_PROCESSING)
        logger.info("Audit %s started for %s", audit.id, domain)

        try:
            warnings = await self._pipeline(audit, url, query)
        except FetchError as exc:
            logger.info("Fetch error for %s: %s - %s", url, exc.code, exc.message)
            raise self._fail(audit, exc.message) from exc
        except AuditPipelineError as exc:
            logger.info("Audit %s failed: %s", audit.id, exc)
            raise self._fail(audit, str(exc)) from exc
        except Exception as exc:
            logger.exception("Audit %s failed", audit.id)
            raise self._fail(audit, str(exc) or 'Unknown error') from exc

        logger.info("Audit %s completed with score %s", audit.id, audit.overall_score)
        return audit, warnings

    def _fail(self, audit: Audit, message: str) -> AuditFailed:
        self.db.rollback()
        self._set_status(audit, STATUS_FAILED, error=message)
        return AuditFailed(audit, message)

    async def _pipeline(self, audit: Audit, url: str, query: Optional[str]):
        result = await self.fetcher(url)
        if result.status_code != 200:
            raise AuditPipelineError(f"Failed to fetch page: HTTP {result.status_code}")

        extraction = extract_content(result, self.settings)
        self.db.add(page_extract_from(audit.id, extraction))
        self.db.commit()

        scoring = score_extraction(extraction)
        analysis = analyze_query(query, extraction) if query else None

        self._set_status(
            audit, STATUS_COMPLETED,
            overall_score=scoring.overall_score,
            module_scores=format_module_scores(scoring.modules),
            rule_results=scoring.rules_as_dicts(),
            query_fit_score=analysis.query_fit_score if analysis else None,
            answer_draft=analysis.answer_draft if analysis else None,
            suggested_faqs=analysis.suggested_faqs if analysis else None,
        )
        return extraction.warnings
