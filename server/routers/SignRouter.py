from fastapi import APIRouter, HTTPException, Request

from server.models.requests import SignRequest
from server.models.responses import ErrorResponse, SignResponse
from shared.models.errors import ConversionError, DocumentNotFoundError

router = APIRouter(tags=["sign"])


@router.post(
    "/sign/{file_id}",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def sign_document(
    request: Request,
    file_id: str,
    body: SignRequest,
) -> SignResponse:
    """Convert, stamp and mail a previously uploaded document.

    Args:
        request (Request): FastAPI request (provides app.state.sign_service).
        file_id (str): Identifier taken from the share link.
        body (SignRequest): JSON body with signerName and signatureImage.

    Returns:
        SignResponse: Success message naming the signer.

    Raises:
        HTTPException: 400 on a missing name or image, 404 for an unknown
            document, 500 for conversion, overlay or mail failures.
    """
    if not body.signerName:
        raise HTTPException(status_code=400, detail="Missing signer name")
    if not body.signatureImage:
        raise HTTPException(status_code=400, detail="Missing signature")

    logging = request.app.state.logging
    sign_service = request.app.state.sign_service
    try:
        return await sign_service.do_sign(file_id, body.signerName, body.signatureImage)
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except ConversionError as e:
        logging.error("Error converting file %s: %s", file_id, e)
        raise HTTPException(status_code=500, detail="Error converting file")
    except Exception as e:
        logging.error("Error during signing process for %s: %s", file_id, e)
        raise HTTPException(status_code=500, detail=f"Error during signing process: {e}")
