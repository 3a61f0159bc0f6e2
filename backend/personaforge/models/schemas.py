"""Pydantic v2 schemas for persona payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

# ─── Personas ──────────────────────────────────────────────────────────────────


class PersonaCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    prompt: str = Field(..., min_length=1, max_length=4000)
    display_name: str | None = Field(default=None, max_length=100)
    triggers: str | None = None
    is_active: bool = False


class PersonaRead(BaseModel):
    id: int
    name: str
    prompt: str
    display_name: str | None = None
    triggers: str | None = None
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
