"""personas.py: Read/write access to the personas table.

Rows written here are never backfilled: a persona created without a
display_name keeps NULL and answers with the configured bot name.

Called by: application code that renders persona replies
Depends on: models/tables.py (Persona), config.py (bot_name)
"""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from personaforge.config import get_settings
from personaforge.models.schemas import PersonaCreate
from personaforge.models.tables import Persona

logger = structlog.get_logger()


def responder_name(persona: Persona, default_name: str | None = None) -> str:
    """Name the persona answers to in conversation.

    Falls back to ``default_name`` and then to BOT_NAME when the persona
    has no display_name (NULL or blank).
    """
    if persona.display_name and persona.display_name.strip():
        return persona.display_name
    return default_name or get_settings().bot_name


async def create_persona(session: AsyncSession, body: PersonaCreate) -> Persona:
    """Insert a persona exactly as given and return the refreshed row."""
    persona = Persona(
        name=body.name,
        prompt=body.prompt,
        display_name=body.display_name,
        triggers=body.triggers,
        is_active=body.is_active,
    )
    session.add(persona)
    await session.flush()
    # WHY: created_at is a server default; load it while we still have
    # an awaitable context instead of lazy-loading later.
    await session.refresh(persona)

    logger.info("persona_created", persona_id=persona.id, name=persona.name)
    return persona


async def get_persona(session: AsyncSession, persona_id: int) -> Persona | None:
    result = await session.execute(select(Persona).where(Persona.id == persona_id))
    return result.scalar_one_or_none()


async def list_personas(session: AsyncSession) -> list[Persona]:
    result = await session.execute(select(Persona).order_by(Persona.id))
    return list(result.scalars().all())
