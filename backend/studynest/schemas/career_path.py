"""Career path request/response schemas."""
from typing import Optional
from studynest.schemas.base import CamelModel, CamelORMModel


class CareerPathCreate(CamelModel):
    career_path: Optional[str] = None
    pdf_data: Optional[str] = None
    content_type: Optional[str] = None


class CareerPathResponse(CamelORMModel):
    career_path: str
    pdf_data: str
    content_type: str
