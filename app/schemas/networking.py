from __future__ import annotations

from pydantic import Field

from app.schemas.resumes import CamelModel


class NetworkingRequest(CamelModel):
    company_name: str = Field(default="", max_length=200)
    role: str = Field(default="", max_length=200)
    contact_name: str | None = Field(default=None, max_length=200)
    contact_role: str | None = Field(default=None, max_length=200)
    resume_text: str = Field(default="", max_length=50000)
    message_type: str = Field(default="", max_length=50)


class NetworkingResponse(CamelModel):
    message: str
    message_type: str
    success: bool = True
