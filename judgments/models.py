"""
judgments/models.py -- Domain dataclasses for judgment notes.

These are pure data containers with zero logic. Validation lives in
judgments/service.py; persistence and document-number assignment live in
judgments/store.py.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class JudgmentInput:
    """The mutable fields of a judgment note.

    Used for both create and update. Update is a full replacement: a field
    left as None here is written as NULL, not kept from the previous version.
    """

    title: str
    case_no: Optional[str] = None
    court: Optional[str] = None
    judgment_date: Optional[str] = None  # YYYY-MM-DD
    parties: Optional[str] = None
    facts: Optional[str] = None
    issues: Optional[str] = None
    holding: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = field(default_factory=list)


@dataclass
class JudgmentNote:
    """A persisted judgment note.

    doc_no is assigned by the store at insert time and never changes.
    updated_at is refreshed on every update.
    """

    id: str
    doc_no: str
    title: str
    case_no: Optional[str] = None
    court: Optional[str] = None
    judgment_date: Optional[str] = None  # YYYY-MM-DD
    parties: Optional[str] = None
    facts: Optional[str] = None
    issues: Optional[str] = None
    holding: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, set by store on insert and update


@dataclass
class JudgmentPage:
    """One page of a filtered judgment listing."""

    items: list[JudgmentNote]
    total: int
    page: int
    limit: int
    total_pages: int
