"""File attachment request/response schemas."""
from typing import Optional
from datetime import datetime
from studynest.schemas.base import CamelModel, CamelORMModel


class FileUpload(CamelModel):
    # Presence is checked by the attachment manager so that every missing
    # field produces the same error message
    name: Optional[str] = None
    file_data: Optional[str] = None
    content_type: Optional[str] = None


class FileDescriptor(CamelORMModel):
    name: str
    content_type: str
    size_bytes: int
    uploaded_at: Optional[datetime] = None
    file_data: Optional[str] = None      # inline storage
    download_url: Optional[str] = None   # disk storage
