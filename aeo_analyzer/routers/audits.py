from __future__ import annotations

from datetime import timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import Settings
from ..db import get_db
from ..guards import client_ip
from ..models import Audit, PageExtract
from ..schemas import AuditRequest
from ..services.audit_service import AuditFailed, AuditService, Fetcher

router = APIRouter(prefix='/api/audits', tags=['audits'])


def get_fetcher(request: Request) -> Fetcher:
    return request.app.state.fetcher


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _iso(dt) -> Optional[str]:
    if dt is None:
        return None
    # sqlite hands back naive datetimes; all stored times are UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def page_extract_json(pe: Optional[PageExtract]) -> Optional[Dict[str, Any]]:
    if pe is None:
        return None
    return {
        'id': pe.id,
        'auditId': pe.audit_id,
        'fetchType': pe.fetch_type,
        'title': pe.title,
        'description': pe.description,
        'canonical': pe.canonical,
        'h1': pe.h1,
        'headings': pe.headings or [],
        'mainText': pe.main_text,
        'topText': pe.top_text,
        'wordCount': pe.word_count,
        'listsCount': pe.lists_count,
        'tablesCount': pe.tables_count,
        'internalLinksCount': pe.internal_links_count,
        'externalLinksCount': pe.external_links_count,
        'externalLinks': pe.external_links or [],
        'jsonLd': pe.json_ld or [],
        'robotsMeta': pe.robots_meta,
        'responseHeaders': pe.response_headers or {},
        'linkDensity': pe.link_density,
        'sentenceStats': pe.sentence_stats,
        'warnings': pe.warnings,
        'createdAt': _iso(pe.created_at),
    }


def audit_json(a: Audit) -> Dict[str, Any]:
    return {
        'id': a.id,
        'url': a.url,
        'query': a.query,
        'status': a.status,
        'overallScore': a.overall_score,
        'moduleScores': a.module_scores,
        'ruleResults': a.rule_results,
        'queryFitScore': a.query_fit_score,
        'answerDraft': a.answer_draft,
        'suggestedFaqs': a.suggested_faqs,
        'error': a.error,
        'createdAt': _iso(a.created_at),
        'updatedAt': _iso(a.updated_at),
        'pageExtract': page_extract_json(a.page_extract),
    }


@router.post('')
async def create_audit(payload: AuditRequest, request: Request, db: Session = Depends(get_db),
                       fetcher: Fetcher = Depends(get_fetcher),
                       settings: Settings = Depends(get_app_settings)):
    settings.validate_runtime()
    service = AuditService(db, fetcher, settings)
    try:
        audit, warnings = await service.run(payload.url, payload.query, client_ip(request.headers))
    except AuditFailed as e:
        return JSONResponse(status_code=500, content={'error': e.message})
    return {
        'id': audit.id,
        'url': audit.url,
        'status': audit.status,
        'overallScore': audit.overall_score,
        'warnings': warnings,
    }


@router.get('')
def list_audits(db: Session = Depends(get_db), settings: Settings = Depends(get_app_settings)):
    stmt = select(Audit).order_by(Audit.created_at.desc()).limit(settings.AUDIT_LIST_LIMIT)
    return [
        {
            'id': a.id,
            'url': a.url,
            'query': a.query,
            'createdAt': _iso(a.created_at),
            'overallScore': a.overall_score,
            'status': a.status,
        }
        for a in db.scalars(stmt)
    ]


@router.get('/{audit_id}')
def get_audit(audit_id: str, db: Session = Depends(get_db)):
    audit = db.get(Audit, audit_id)
    if not audit:
        raise HTTPException(status_code=404, detail='Audit not found')
    return audit_json(audit)
