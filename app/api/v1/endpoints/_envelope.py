from fastapi import status
from fastapi.responses import JSONResponse

from app.schemas.common import ApiResponse


def envelope_response(result: ApiResponse) -> JSONResponse:
    """Success envelopes as 200, failures as 400 with the same body shape."""
    code = status.HTTP_200_OK if result.success else status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content=result.model_dump(mode="json"))
