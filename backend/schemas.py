from __future__ import annotations

import re
import secrets
import time
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from backend.date_utils import format_date_for_storage

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

TASK_NAME_MAX = 100
TASK_DESCRIPTION_MAX = 500
NOTE_TITLE_MAX = 200
PASSWORD_MIN = 8
PASSWORD_MAX_BYTES = 72


def envelope(data: Any = None) -> dict:
    if data is None:
        return {"success": True}
    return {"success": True, "data": data}


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def _clean_task_name(value):
    name = str(value or "").strip()
    if not name:
        raise ValueError("Task name is required")
    if len(name) > TASK_NAME_MAX:
        raise ValueError("Task name is too long")
    return name


def _clean_description(value):
    if value is None:
        return None
    if len(value) > TASK_DESCRIPTION_MAX:
        raise ValueError("Description is too long")
    return value


def _clean_color(value):
    if value is None or not HEX_COLOR_RE.match(value):
        raise ValueError("Invalid color format")
    return value


def _clean_date(value):
    if value is None or not str(value).strip():
        raise ValueError("Date is required")
    return format_date_for_storage(str(value))


# --- note blocks ---


def new_block_id() -> str:
    return f"b_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


class TextBlock(BaseModel):
    id: str = Field(default_factory=new_block_id)
    type: Literal["text"] = "text"
    content: str = ""


class TodoBlock(BaseModel):
    id: str = Field(default_factory=new_block_id)
    type: Literal["todo"] = "todo"
    content: str = ""
    completed: bool = False


class ImageBlock(BaseModel):
    id: str = Field(default_factory=new_block_id)
    type: Literal["image"] = "image"
    content: str

    @field_validator("content")
    @classmethod
    def check_data_uri(cls, value: str) -> str:
        if not value.startswith("data:"):
            raise ValueError("Image blocks must contain a data URI")
        return value


NoteBlock = Annotated[Union[TextBlock, TodoBlock, ImageBlock], Field(discriminator="type")]
NOTE_BLOCKS = TypeAdapter(List[NoteBlock])


def validate_blocks_json(content: str) -> str:
    try:
        NOTE_BLOCKS.validate_json(content)
    except ValueError as exc:
        raise ValueError("Invalid note content") from exc
    return content


# --- auth ---


class RegisterPayload(ApiModel):
    email: Optional[str] = Field(None, validate_default=True)
    password: Optional[str] = Field(None, validate_default=True)
    name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        email = str(value or "").strip().lower()
        if not email:
            raise ValueError("Email is required")
        if not EMAIL_RE.match(email):
            raise ValueError("Invalid email address")
        return email

    @field_validator("password")
    @classmethod
    def check_password(cls, value):
        if not value:
            raise ValueError("Password is required")
        if len(value) < PASSWORD_MIN:
            raise ValueError(f"Password must be at least {PASSWORD_MIN} characters")
        if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError("Password is too long")
        return value

    @field_validator("name")
    @classmethod
    def check_name(cls, value):
        name = str(value or "").strip()
        if len(name) > TASK_NAME_MAX:
            raise ValueError("Name is too long")
        return name or None


class LoginPayload(ApiModel):
    email: str = ""
    password: str = ""


class UserResponse(ApiModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[str] = None


class SessionResponse(ApiModel):
    token: str
    token_type: str = "bearer"
    expires_at: str
    user: UserResponse


# --- tasks ---


class TaskCreate(ApiModel):
    name: Optional[str] = Field(None, validate_default=True)
    description: Optional[str] = None
    color: Optional[str] = None
    emoji: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value):
        return _clean_task_name(value)

    @field_validator("description")
    @classmethod
    def check_description(cls, value):
        return _clean_description(value)

    @field_validator("color")
    @classmethod
    def check_color(cls, value):
        if value is None:
            return None
        return _clean_color(value)


class TaskPatch(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    emoji: Optional[str] = None
    is_active: Optional[bool] = None
    is_completed: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value):
        return _clean_task_name(value)

    @field_validator("description")
    @classmethod
    def check_description(cls, value):
        return _clean_description(value)

    @field_validator("color")
    @classmethod
    def check_color(cls, value):
        return _clean_color(value)

    @field_validator("is_active", "is_completed")
    @classmethod
    def check_flag(cls, value):
        if value is None:
            raise ValueError("Flags cannot be null")
        return value


class ReorderPayload(ApiModel):
    task_ids: List[str] = Field(default_factory=list, validate_default=True)

    @field_validator("task_ids")
    @classmethod
    def check_ids(cls, value):
        if not value:
            raise ValueError("At least one task ID is required")
        if len(set(value)) != len(value):
            raise ValueError("Duplicate task IDs")
        return value


class CompletionResponse(ApiModel):
    id: str
    task_id: str
    date: str
    completed: bool
    created_at: Optional[str] = None
    task: Optional[dict] = None


class TaskResponse(ApiModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    color: str
    emoji: Optional[str] = None
    is_active: bool
    is_completed: bool
    completed_at: Optional[str] = None
    sort_order: int
    created_at: str
    updated_at: str
    completions: List[CompletionResponse] = Field(default_factory=list)
    last_completion_date: Optional[str] = None


# --- completions ---


class CompletionToggle(ApiModel):
    task_id: Optional[str] = Field(None, validate_default=True)
    date: Optional[str] = Field(None, validate_default=True)
    completed: bool

    @field_validator("task_id")
    @classmethod
    def check_task_id(cls, value):
        if not value:
            raise ValueError("Task ID is required")
        return value

    @field_validator("date")
    @classmethod
    def check_date(cls, value):
        return _clean_date(value)


# --- daily notes ---


class DailyNoteUpsert(ApiModel):
    date: Optional[str] = Field(None, validate_default=True)
    content: Optional[str] = ""

    @field_validator("date")
    @classmethod
    def check_date(cls, value):
        return _clean_date(value)

    @field_validator("content")
    @classmethod
    def check_content(cls, value):
        return value or ""


class DailyNoteResponse(ApiModel):
    id: str
    user_id: str
    date: str
    content: str
    created_at: str
    updated_at: str


# --- free-form notes ---


def _clean_title(value):
    title = str(value or "").strip()
    if not title:
        raise ValueError("Title is required")
    if len(title) > NOTE_TITLE_MAX:
        raise ValueError("Title is too long")
    return title


def _clean_content(value):
    if value is None:
        return None
    return validate_blocks_json(value)


class UserNoteCreate(ApiModel):
    title: Optional[str] = Field(None, validate_default=True)
    content: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value):
        return _clean_title(value)

    @field_validator("content")
    @classmethod
    def check_content(cls, value):
        return _clean_content(value)


class UserNotePatch(ApiModel):
    title: Optional[str] = None
    content: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value):
        return _clean_title(value)

    @field_validator("content")
    @classmethod
    def check_content(cls, value):
        return _clean_content(value)


class UserNoteResponse(ApiModel):
    id: str
    user_id: str
    title: str
    content: str
    sort_order: int
    created_at: str
    updated_at: str
