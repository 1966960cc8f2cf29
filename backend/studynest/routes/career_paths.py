"""Career path API routes."""
from fastapi import APIRouter, Depends

from studynest.deps import get_career_path_manager
from studynest.models.user import User
from studynest.schemas.career_path import CareerPathCreate, CareerPathResponse
from studynest.schemas.common import MessageResponse
from studynest.services.access_gate import require_teacher
from studynest.services.career_paths import CareerPathManager

router = APIRouter(prefix="/career-paths", tags=["career-paths"])


@router.post("", response_model=MessageResponse, status_code=201)
async def create_career_path(
    body: CareerPathCreate,
    user: User = Depends(require_teacher),
    manager: CareerPathManager = Depends(get_career_path_manager),
):
    """Upload a career path PDF. Labels are unique and never replaced."""
    await manager.create(body.career_path, body.pdf_data, body.content_type, user)
    return {"message": "Career path PDF uploaded"}


@router.get("", response_model=list[CareerPathResponse])
async def list_career_paths(manager: CareerPathManager = Depends(get_career_path_manager)):
    """List all career path PDFs."""
    return await manager.list()
