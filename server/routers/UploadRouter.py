from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from server.models.responses import ErrorResponse, UploadResponse

router = APIRouter(tags=["intake"])


@router.post("/upload", responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}})
async def upload_document(
    request: Request,
    file: UploadFile | None = File(default=None),
) -> UploadResponse:
    """Store an uploaded document and return its share link.

    Args:
        request (Request): FastAPI request (provides app.state.intake_service).
        file (UploadFile | None): Multipart field ``file``.

    Returns:
        UploadResponse: Confirmation message and share link.

    Raises:
        HTTPException: 400 if no file was attached.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file received")

    content = await file.read()
    intake_service = request.app.state.intake_service
    return await intake_service.do_intake(content, file.filename)
