"""
Key lookup API - queried by the AuthorizedKeysCommand on managed hosts.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from ..errors import UnknownHost
from ..metrics import record_keys_request
from ..service import get_key_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["keys"])


@router.get("/v1/keys/{host}/{user}", response_class=PlainTextResponse)
def get_keys(host: str, user: str, request: Request):
    """
    authorized_keys body for ``user`` on ``host``.

    Unknown hosts are a 400. Everything else, including accounts without any
    mapping, answers 200 so the calling host replaces its cached keys.
    """
    service = get_key_service()
    remote_addr = request.client.host if request.client else ""

    try:
        body = service.lookup_text(host, user)
    except UnknownHost as e:
        # path segments of unknown hosts stay out of the label set
        record_keys_request(e.http_status)
        logger.error(f"{e} (remoteAddr={remote_addr}, code={e.http_status})")
        return PlainTextResponse(f"# {e}", status_code=e.http_status)

    record_keys_request(200, host, user)
    return PlainTextResponse(body)
