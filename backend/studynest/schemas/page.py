"""Page request/response schemas."""
from pydantic import Field, field_validator
from studynest.schemas.base import CamelModel, CamelORMModel


class PageCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    semester: int = Field(..., gt=0)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        """Surrounding whitespace is dropped, so a blank name fails min_length."""
        if isinstance(v, str):
            return v.strip()
        return v


class PageResponse(CamelORMModel):
    name: str
    semester: int
