"""Shared route dependencies.

Long-lived collaborators (settings, blob store, locks, database) are built
once in the app lifespan and kept on ``app.state``. Route modules get them
from here rather than from module globals.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from studynest.config import Settings
from studynest.database import get_db
from studynest.services.attachments import AttachmentManager
from studynest.services.career_paths import CareerPathManager


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_attachment_manager(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AttachmentManager:
    state = request.app.state
    return AttachmentManager(
        db,
        state.blob_store,
        max_encoded_bytes=state.settings.MAX_ENCODED_PAYLOAD_BYTES,
        locks=state.locks,
    )


def get_career_path_manager(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> CareerPathManager:
    state = request.app.state
    return CareerPathManager(
        db,
        max_encoded_bytes=state.settings.MAX_ENCODED_PAYLOAD_BYTES,
        locks=state.locks,
    )
