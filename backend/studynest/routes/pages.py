"""Pages API routes."""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studynest.database import get_db
from studynest.deps import get_attachment_manager
from studynest.errors import Conflict
from studynest.models.page import Page
from studynest.models.user import User
from studynest.schemas.common import MessageResponse
from studynest.schemas.page import PageCreate, PageResponse
from studynest.services.access_gate import require_teacher
from studynest.services.attachments import AttachmentManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pages", tags=["pages"])


@router.get("", response_model=list[PageResponse])
async def list_pages(db: AsyncSession = Depends(get_db)):
    """List all pages."""
    result = await db.execute(select(Page).order_by(Page.semester, Page.name))
    return [_to_response(p) for p in result.scalars().all()]


@router.post("", response_model=MessageResponse, status_code=201)
async def create_page(
    body: PageCreate,
    request: Request,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    """Create a page. Page names are unique."""
    async with request.app.state.locks.hold(("page", body.name)):
        result = await db.execute(select(Page.id).where(Page.name == body.name))
        if result.scalar_one_or_none() is not None:
            raise Conflict("Page already exists")
        db.add(Page(name=body.name, semester=body.semester))
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise Conflict("Page already exists") from e
    logger.info(f"Page created: {body.name} (semester {body.semester}) by {user.username}")
    return {"message": "Page created"}


@router.delete("/{page_name}", response_model=MessageResponse)
async def delete_page(
    page_name: str,
    user: User = Depends(require_teacher),
    manager: AttachmentManager = Depends(get_attachment_manager),
):
    """Delete a page and every file attached to it."""
    await manager.delete_page(page_name, user)
    return {"message": "Page deleted"}


def _to_response(page: Page) -> dict:
    return {"name": page.name, "semester": page.semester}
