"""Pydantic request schemas.

One model per endpoint body. Unknown fields are rejected instead of being
merged into the update, and update handlers only touch the fields the
client actually sent (`model_fields_set`).
"""

from datetime import date
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from tracker.errors import ValidationError


class _Body(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


def parse(schema, payload):
    """Validate a decoded JSON body against `schema`.

    Raises:
        ValidationError: If the body is missing, not an object, or fails
            the schema. The message names the first offending field.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    try:
        return schema.model_validate(payload)
    except SchemaError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"{field}: {first['msg']}" if field else first["msg"])


def provided(body):
    """Return only the fields the client sent, as a dict."""
    return body.model_dump(include=body.model_fields_set)


# ---- Auth ----
class RegisterRequest(_Body):
    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., min_length=4, max_length=255)
    password: str = Field(..., min_length=6)


class LoginRequest(_Body):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# ---- Users ----
class AdminCreateUserRequest(_Body):
    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., min_length=4, max_length=255)
    password: str = Field(..., min_length=6)
    role: str = Field("user", min_length=1, max_length=50)


class UserStatusRequest(_Body):
    status: Literal["pending", "approved", "rejected", "inactive"]


class PasswordChangeRequest(_Body):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


# ---- Projects ----
class PicIn(_Body):
    # Registered user id; free-text PICs leave it out.
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=255)
    avatar: Optional[str] = None


class PhaseIn(_Body):
    # Present when syncing an existing phase, absent for new ones.
    id: Optional[str] = None
    name: str = Field("Phase", min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str = "pending"
    progress: int = Field(0, ge=0, le=100)


class ProjectCreate(_Body):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    priority: str = "Medium"
    status: str = "Active"
    description: Optional[str] = None
    icon: Optional[str] = None
    notes: Optional[str] = None
    documents: List[Any] = Field(default_factory=list)
    pics: List[PicIn] = Field(default_factory=list)
    phases: List[PhaseIn] = Field(default_factory=list)


class ProjectUpdate(_Body):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    priority: Optional[str] = None
    status: Optional[str] = None
    archived: Optional[bool] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    notes: Optional[str] = None
    documents: Optional[List[Any]] = None
    pics: Optional[List[PicIn]] = None
    phases: Optional[List[PhaseIn]] = None


class PhaseUpdate(_Body):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    progress: Optional[int] = Field(None, ge=0, le=100)


# ---- Bugs ----
class BugCreate(_Body):
    summary: str = Field(..., max_length=500)
    description: Optional[str] = None
    priority: Optional[str] = None
    type: Optional[str] = None
    project_id: Optional[str] = None
    parent_id: Optional[str] = None
    components: Optional[List[str]] = None
    labels: Optional[List[str]] = None
    attachments: Optional[List[Any]] = None


class BugUpdate(_Body):
    summary: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    type: Optional[str] = None
    components: Optional[List[str]] = None
    labels: Optional[List[str]] = None
    attachments: Optional[List[Any]] = None


# ---- Parameters ----
class ParameterCreate(_Body):
    category: Literal["role", "phase", "status", "priority"]
    label: str = Field(..., min_length=1, max_length=255)
    value: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)
    position: int = 0


class ParameterUpdate(_Body):
    label: Optional[str] = Field(None, min_length=1, max_length=255)
    value: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)
    position: Optional[int] = None
    is_active: Optional[bool] = None


# ---- Messages ----
class MessageCreate(_Body):
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    type: Literal["info", "warning", "success", "error"] = "info"
