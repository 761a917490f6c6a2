# src/common/request_logger.py

import logging
import uuid
from typing import Optional

from fastapi import Request

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLogger(logging.LoggerAdapter):
    """
    Logger adapter scoped to a single request.

    Prefixes every record with the request id and, once known, the caller id.
    """

    def process(self, msg, kwargs):
        request_id = self.extra.get("request_id")
        user_id = self.extra.get("user_id")
        prefix = f"[req={request_id}"
        if user_id:
            prefix += f" user={user_id}"
        return f"{prefix}] {msg}", kwargs


def request_logger(name: str, request_id: Optional[str] = None, user_id: Optional[str] = None) -> RequestLogger:
    return RequestLogger(
        logging.getLogger(name),
        {"request_id": request_id or uuid.uuid4().hex, "user_id": user_id},
    )


def get_request_id(request: Request) -> str:
    """
    Dependency returning the caller-supplied request id, or a generated one.
    """
    return request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
