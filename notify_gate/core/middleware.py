"""HTTP middleware binding a correlation id to every request.

The id comes from the configured request-id header when the client sends
one, otherwise a UUID4 is generated. It is stored in the logging contextvar
for the duration of the request and echoed back on the response together
with the handling time.
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from notify_gate.core.config import settings
from notify_gate.core.logging import clear_request_id, set_request_id


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate ``X-Request-ID`` and report ``X-Request-Duration-ms``.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with correlation headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault(
        "X-Request-Duration-ms", f"{(time.perf_counter() - start) * 1000:.2f}"
    )
    return response
