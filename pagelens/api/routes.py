"""REST API routes: extract a record from posted HTML, apply a record to it."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from pagelens.api.auth import require_api_auth
from pagelens.apply.applier import ApplyStatus, FormApplier
from pagelens.config.settings import ApplyConfig, ExtractionConfig
from pagelens.document.html import parse_html
from pagelens.pipeline.assembler import build_record

router = APIRouter()

_extraction_config = ExtractionConfig()
_apply_config = ApplyConfig()

_MAX_HTML_CHARS = 5_000_000


class ExtractRequest(BaseModel):
    html: str = Field(max_length=_MAX_HTML_CHARS)
    url: str = ""
    title: str = ""


class ApplyRequest(BaseModel):
    html: str = Field(max_length=_MAX_HTML_CHARS)
    payload: str | dict[str, Any]


class ApplyResponse(BaseModel):
    result: dict[str, Any]
    mutations: list[dict[str, Any]]


@router.post("/extract")
async def extract(request: ExtractRequest, _: str = Depends(require_api_auth)) -> dict[str, Any]:
    """Extract a structured record from an HTML document."""
    document = parse_html(request.html, url=request.url)
    if request.title:
        document.title = request.title
    return build_record(document, config=_extraction_config).to_payload()


@router.post("/apply", response_model=ApplyResponse)
async def apply(request: ApplyRequest, _: str = Depends(require_api_auth)) -> ApplyResponse:
    """Apply a record to an HTML form and return the control writes it produced."""
    document = parse_html(request.html)
    text = request.payload if isinstance(request.payload, str) else json.dumps(request.payload)
    result = FormApplier(_apply_config).apply(document, text)
    if result.status is ApplyStatus.PARSE_ERROR:
        raise HTTPException(status_code=400, detail=result.message)
    return ApplyResponse(
        result=result.model_dump(mode="json"),
        mutations=[mutation.to_dict() for mutation in document.mutations],
    )
