from pydantic import BaseModel


class UploadResponse(BaseModel):
    message: str
    shareLink: str


class SignResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
