# src/common/error_handlers.py

import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.common.exceptions import DiscussionError, InvalidArgumentError
from src.common.utils.global_functions import resPayloadData
from src.common.utils.global_messages import GlobalMessages

logger = logging.getLogger(__name__)

async def discussion_error_handler(request: Request, exc: DiscussionError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=resPayloadData(exc.status_code, True, exc.message, error_kind=exc.kind),
    )

async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed ids and payloads are reported as invalid arguments (400).
    """
    code = InvalidArgumentError.status_code
    return JSONResponse(
        status_code=code,
        content=resPayloadData(
            code,
            True,
            GlobalMessages.INVALID_REQUEST,
            data=jsonable_encoder(exc.errors()),
            error_kind=InvalidArgumentError.kind,
        ),
    )

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DiscussionError, discussion_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
