"""
judgments/store.py -- SQLAlchemy Core persistence layer for judgment notes.

Uses SQLAlchemy Core (not ORM) so the dataclasses in judgments/models.py
remain the authoritative domain representation. SQLite and PostgreSQL are both
supported; switching is a connection string change.

Pattern: Repository + Data Mapper. JudgmentStore is the repository;
_row_to_judgment is the mapper. Service and route code never touches SQL.

Security: all queries use bound parameters. The search filter is composed
from SQLAlchemy column expressions over a fixed column list, never by
concatenating SQL text.

Document numbers: doc_sequences holds a named counter. create() increments it
and inserts the note inside one transaction, so two concurrent creates can
never receive the same number (the UPDATE row lock serializes them on
PostgreSQL; SQLite serializes all writers).

Usage:
    store = JudgmentStore(engine)
    note_id, doc_no = store.create(JudgmentInput(title="Smith v. Jones"))
    page_items, total = store.search("smith", limit=10, offset=0)
    store.update(note_id, JudgmentInput(title="Smith v. Jones (2)"))
    store.delete(note_id)
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, or_, select
from sqlalchemy.engine import Engine

from judgments.models import JudgmentInput, JudgmentNote

_DOC_SEQUENCE = "judgment"
_DOC_NO_PREFIX = "JN-"

# ---------------------------------------------------------------------------
# Schema (mirror of migrations/0002 and 0003)
# ---------------------------------------------------------------------------

_metadata = MetaData()

_judgments = Table(
    "judgments",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("doc_no", String(32), nullable=False, unique=True),
    Column("title", Text, nullable=False),
    Column("case_no", Text),
    Column("court", Text),
    Column("judgment_date", String(10)),  # YYYY-MM-DD
    Column("parties", Text),
    Column("facts", Text),
    Column("issues", Text),
    Column("holding", Text),
    Column("notes", Text),
    Column("tags", Text, nullable=False),  # JSON array serialized as text
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_doc_sequences = Table(
    "doc_sequences",
    _metadata,
    Column("name", String(50), primary_key=True),
    Column("last_value", Integer, nullable=False),
)

# Columns matched by the free-text search filter.
_SEARCH_COLUMNS = (
    _judgments.c.doc_no,
    _judgments.c.title,
    _judgments.c.case_no,
    _judgments.c.court,
    _judgments.c.notes,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_doc_no(seq: int) -> str:
    """Render a sequence value as a document number: 7 -> 'JN-000007'."""
    return f"{_DOC_NO_PREFIX}{seq:06d}"


def _search_condition(term: str):
    """Case-insensitive substring match across the searchable columns.

    autoescape=True makes % and _ in the user's term match literally.
    NULL columns simply do not match.
    """
    needle = term.lower()
    return or_(*[func.lower(col).contains(needle, autoescape=True) for col in _SEARCH_COLUMNS])


def _mutable_values(data: JudgmentInput) -> dict:
    return {
        "title": data.title,
        "case_no": data.case_no,
        "court": data.court,
        "judgment_date": data.judgment_date,
        "parties": data.parties,
        "facts": data.facts,
        "issues": data.issues,
        "holding": data.holding,
        "notes": data.notes,
        "tags": json.dumps(list(data.tags or [])),
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class JudgmentStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def search(self, term: str = "", limit: int = 10, offset: int = 0) -> tuple[list[JudgmentNote], int]:
        """Return (page_items, total_matches) for an optional search term.

        Order: judgment_date newest first with undated notes last, then most
        recently updated first. id is the final tiebreaker so paging is stable.
        """
        condition = _search_condition(term) if term else None

        count_q = select(func.count()).select_from(_judgments)
        items_q = _judgments.select()
        if condition is not None:
            count_q = count_q.where(condition)
            items_q = items_q.where(condition)
        items_q = (
            items_q.order_by(
                _judgments.c.judgment_date.desc().nulls_last(),
                _judgments.c.updated_at.desc(),
                _judgments.c.id,
            )
            .limit(limit)
            .offset(offset)
        )

        with self.engine.connect() as conn:
            total = conn.execute(count_q).scalar() or 0
            rows = conn.execute(items_q).fetchall()
        return [_row_to_judgment(r) for r in rows], total

    def get(self, note_id: str) -> Optional[JudgmentNote]:
        """Fetch a single note by id. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_judgments.select().where(_judgments.c.id == note_id)).fetchone()
        return _row_to_judgment(row) if row is not None else None

    def create(self, data: JudgmentInput) -> tuple[str, str]:
        """Insert a note and return (id, doc_no).

        The document number is drawn from doc_sequences in the same
        transaction as the insert; if the insert fails the increment is
        rolled back with it.
        """
        note_id = str(uuid.uuid4())
        now = _now_iso()
        with self.engine.begin() as conn:
            conn.execute(
                _doc_sequences.update()
                .where(_doc_sequences.c.name == _DOC_SEQUENCE)
                .values(last_value=_doc_sequences.c.last_value + 1)
            )
            seq = conn.execute(
                select(_doc_sequences.c.last_value).where(_doc_sequences.c.name == _DOC_SEQUENCE)
            ).scalar_one()
            doc_no = format_doc_no(seq)
            conn.execute(
                _judgments.insert().values(
                    id=note_id,
                    doc_no=doc_no,
                    created_at=now,
                    updated_at=now,
                    **_mutable_values(data),
                )
            )
        return note_id, doc_no

    def update(self, note_id: str, data: JudgmentInput) -> bool:
        """Replace every mutable field and refresh updated_at.

        Returns True if a row matched, False if note_id was not found.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _judgments.update()
                .where(_judgments.c.id == note_id)
                .values(updated_at=_now_iso(), **_mutable_values(data))
            )
        return result.rowcount > 0

    def delete(self, note_id: str) -> bool:
        """Delete a note. Returns True if deleted, False if not found."""
        with self.engine.begin() as conn:
            result = conn.execute(_judgments.delete().where(_judgments.c.id == note_id))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_judgment(row) -> JudgmentNote:
    return JudgmentNote(
        id=row.id,
        doc_no=row.doc_no,
        title=row.title,
        case_no=row.case_no,
        court=row.court,
        judgment_date=row.judgment_date,
        parties=row.parties,
        facts=row.facts,
        issues=row.issues,
        holding=row.holding,
        notes=row.notes,
        tags=json.loads(row.tags) if row.tags else [],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
