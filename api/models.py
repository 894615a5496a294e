"""
API request and response models for the Judgment Notes REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
judgments/models.py, which own the internal domain representation. Route
handlers map between the two.

Request models only check shape and types. Business rules (required fields,
password length, role values, title required) are enforced by the service
layer so the same rules hold for every caller and produce the same
error messages.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from judgments.models import JudgmentInput, JudgmentNote, JudgmentPage

# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body of every error response.

    error is the human-readable message as a plain string, which is what API
    clients display. code is the stable machine-readable kind; detail is
    optional extra context.
    """

    error: str
    code: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool = True


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)
    name: str = Field(default="", max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


class UserResponse(BaseModel):
    """Public view of an account. There is deliberately no password field."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    role: str
    avatar_url: Optional[str] = None
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(**user.public_view())


class AuthResponse(BaseModel):
    """Response for register and login."""

    model_config = ConfigDict(frozen=True)

    token: str
    user: UserResponse


# ---------------------------------------------------------------------------
# User administration
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /api/users. role defaults to "user"."""

    email: str = Field(default="", max_length=255)
    name: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)
    role: Optional[str] = Field(default=None, max_length=20)


class UserPatch(BaseModel):
    """Request body for PATCH /api/users/{id}. Omitted or null fields are left unchanged."""

    email: Optional[str] = Field(default=None, max_length=255)
    name: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = Field(default=None, max_length=20)
    password: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Judgments
# ---------------------------------------------------------------------------


class JudgmentPayload(BaseModel):
    """Request body for POST /api/judgments and PUT /api/judgments/{id}.

    PUT is a full replacement: omitted optional fields are stored as null and
    omitted tags as an empty list.
    """

    title: str = ""
    case_no: Optional[str] = None
    court: Optional[str] = None
    judgment_date: Optional[date] = None
    parties: Optional[str] = None
    facts: Optional[str] = None
    issues: Optional[str] = None
    holding: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[list[str]] = None

    def to_input(self) -> JudgmentInput:
        return JudgmentInput(
            title=self.title,
            case_no=self.case_no,
            court=self.court,
            judgment_date=self.judgment_date.isoformat() if self.judgment_date else None,
            parties=self.parties,
            facts=self.facts,
            issues=self.issues,
            holding=self.holding,
            notes=self.notes,
            tags=list(self.tags or []),
        )


class JudgmentResponse(BaseModel):
    """A full judgment note."""

    model_config = ConfigDict(frozen=True)

    id: str
    doc_no: str
    title: str
    case_no: Optional[str]
    court: Optional[str]
    judgment_date: Optional[str]
    parties: Optional[str]
    facts: Optional[str]
    issues: Optional[str]
    holding: Optional[str]
    notes: Optional[str]
    tags: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str

    @classmethod
    def from_note(cls, note: JudgmentNote) -> "JudgmentResponse":
        """Factory Method -- the domain-to-transport mapping lives beside the model."""
        return cls(
            id=note.id,
            doc_no=note.doc_no,
            title=note.title,
            case_no=note.case_no,
            court=note.court,
            judgment_date=note.judgment_date,
            parties=note.parties,
            facts=note.facts,
            issues=note.issues,
            holding=note.holding,
            notes=note.notes,
            tags=list(note.tags),
            created_at=note.created_at,
            updated_at=note.updated_at,
        )


class JudgmentCreatedResponse(BaseModel):
    """Response for POST /api/judgments: the new id and its assigned document number."""

    model_config = ConfigDict(frozen=True)

    id: str
    doc_no: str


class JudgmentListResponse(BaseModel):
    """Response for GET /api/judgments. total_pages is serialized as totalPages."""

    model_config = ConfigDict(frozen=True)

    items: list[JudgmentResponse] = Field(default_factory=list)
    total: int
    page: int
    limit: int
    total_pages: int = Field(serialization_alias="totalPages")

    @classmethod
    def from_page(cls, page: JudgmentPage) -> "JudgmentListResponse":
        return cls(
            items=[JudgmentResponse.from_note(n) for n in page.items],
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
        )
