from pydantic import BaseModel
from typing import Optional, Dict


class PhotoPresignRequest(BaseModel):
    filename: Optional[str] = None
    content_type: Optional[str] = None


class PhotoPresignResponse(BaseModel):
    method: str = "POST"
    upload_url: str
    fields: Dict[str, str]
    key: str
    public_url: str
