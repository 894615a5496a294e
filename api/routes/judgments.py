"""
api/routes/judgments.py -- Judgment note endpoints.

Routes:
  GET    /api/judgments        -- paginated, searchable list (public)
  GET    /api/judgments/{id}   -- single note (public)
  POST   /api/judgments        -- create; 201 {id, doc_no} (bearer token)
  PUT    /api/judgments/{id}   -- full replacement; 204 (bearer token)
  DELETE /api/judgments/{id}   -- delete; 204 (bearer token)

Any authenticated account may write; there is no per-note ownership.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.models import JudgmentCreatedResponse, JudgmentListResponse, JudgmentPayload, JudgmentResponse
from auth.dependencies import get_principal
from judgments import service
from judgments.store import JudgmentStore

router = APIRouter()


def _store(request: Request) -> JudgmentStore:
    return request.app.state.judgment_store


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------


@router.get("/judgments", response_model=JudgmentListResponse)
def list_judgments(
    request: Request,
    search: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
) -> JudgmentListResponse:
    """List notes matching an optional search term.

    page and limit are taken as raw strings: a non-numeric or < 1 page becomes
    1, a non-numeric or < 1 limit becomes 10, and limit > 100 becomes 100.
    """
    result = service.list_judgments(_store(request), search=search, page=page, limit=limit)
    return JudgmentListResponse.from_page(result)


@router.get("/judgments/{note_id}", response_model=JudgmentResponse)
def get_judgment(request: Request, note_id: str) -> JudgmentResponse:
    return JudgmentResponse.from_note(service.get_judgment(_store(request), note_id))


# ---------------------------------------------------------------------------
# Authenticated writes
# ---------------------------------------------------------------------------


@router.post(
    "/judgments",
    response_model=JudgmentCreatedResponse,
    status_code=201,
    dependencies=[Depends(get_principal)],
)
def create_judgment(request: Request, body: JudgmentPayload) -> JudgmentCreatedResponse:
    """Create a note. The document number is assigned by the store."""
    note_id, doc_no = service.create_judgment(_store(request), body.to_input())
    return JudgmentCreatedResponse(id=note_id, doc_no=doc_no)


@router.put("/judgments/{note_id}", status_code=204, dependencies=[Depends(get_principal)])
def update_judgment(request: Request, note_id: str, body: JudgmentPayload) -> Response:
    """Replace every mutable field of a note."""
    service.update_judgment(_store(request), note_id, body.to_input())
    return Response(status_code=204)


@router.delete("/judgments/{note_id}", status_code=204, dependencies=[Depends(get_principal)])
def delete_judgment(request: Request, note_id: str) -> Response:
    service.delete_judgment(_store(request), note_id)
    return Response(status_code=204)
