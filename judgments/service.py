"""
judgments/service.py -- Listing and CRUD rules for judgment notes.

Pagination normalization, title validation, and not-found handling live here;
SQL lives in judgments/store.py. Functions raise core.errors kinds.
"""

import logging
import math
from dataclasses import replace
from typing import Optional, Union

from core.errors import NotFoundError, ValidationError
from judgments.models import JudgmentInput, JudgmentNote, JudgmentPage
from judgments.store import JudgmentStore

logger = logging.getLogger("judgmentnotes.judgments")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _as_int(raw: Union[int, str, None]) -> Optional[int]:
    if raw is None or isinstance(raw, int):
        return raw
    try:
        return int(raw.strip())
    except ValueError:
        return None


def normalize_paging(page: Union[int, str, None], limit: Union[int, str, None]) -> tuple[int, int]:
    """Clamp page/limit to usable values.

    Query-string values arrive as text; anything that is not an integer
    counts as missing rather than being rejected.

    page:  missing, unparsable or < 1 -> 1
    limit: missing, unparsable or < 1 -> 10; > 100 -> 100
    """
    page, limit = _as_int(page), _as_int(limit)
    page = page if page is not None and page >= 1 else DEFAULT_PAGE
    if limit is None or limit < 1:
        limit = DEFAULT_LIMIT
    return page, min(limit, MAX_LIMIT)


def _checked(data: JudgmentInput) -> JudgmentInput:
    title = (data.title or "").strip()
    if not title:
        raise ValidationError("invalid payload (title required)")
    return replace(data, title=title, tags=list(data.tags or []))


def list_judgments(
    store: JudgmentStore,
    search: Optional[str] = None,
    page: Union[int, str, None] = None,
    limit: Union[int, str, None] = None,
) -> JudgmentPage:
    page, limit = normalize_paging(page, limit)
    term = (search or "").strip()
    items, total = store.search(term, limit=limit, offset=(page - 1) * limit)
    total_pages = max(1, math.ceil(total / limit))
    return JudgmentPage(items=items, total=total, page=page, limit=limit, total_pages=total_pages)


def get_judgment(store: JudgmentStore, note_id: str) -> JudgmentNote:
    note = store.get(note_id)
    if note is None:
        raise NotFoundError("not found")
    return note


def create_judgment(store: JudgmentStore, data: JudgmentInput) -> tuple[str, str]:
    """Validate and insert. Returns (id, doc_no); the store assigns doc_no."""
    note_id, doc_no = store.create(_checked(data))
    logger.info("Created judgment %s (%s)", note_id, doc_no)
    return note_id, doc_no


def update_judgment(store: JudgmentStore, note_id: str, data: JudgmentInput) -> None:
    if not store.update(note_id, _checked(data)):
        raise NotFoundError("not found")
    logger.info("Updated judgment %s", note_id)


def delete_judgment(store: JudgmentStore, note_id: str) -> None:
    if not store.delete(note_id):
        raise NotFoundError("not found")
    logger.info("Deleted judgment %s", note_id)
