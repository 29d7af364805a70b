"""Request routing logic."""

import logging
from typing import Optional

from jailfs.bootstrap.config import HEALTHZ_PATH
from jailfs.domain.correlation_id import CorrelationLoggerAdapter
from jailfs.domain.http_types import HttpRequest, HttpResponse
from jailfs.domain.response_builders import healthz_response
from jailfs.storage.filesystem import JailedFileSystem
from jailfs.transport.lifecycle import ServerLifecycle

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("jailfs.pipeline.router"), {}
)


def handle_healthz(lifecycle: Optional[ServerLifecycle]) -> HttpResponse:
    """Report 200 while serving and 503 once draining has begun."""
    is_draining = lifecycle.is_draining() if lifecycle is not None else False
    ROUTER_LOGGER.info(
        "Health check performed",
        extra={"event": "healthz_check", "draining": is_draining},
    )
    return healthz_response(is_draining)


def route_request(
    request: HttpRequest,
    filesystem: JailedFileSystem,
    lifecycle: Optional[ServerLifecycle] = None,
) -> HttpResponse:
    """Answer health checks, hand every other path to the jailed filesystem."""
    if request.path == HEALTHZ_PATH:
        return handle_healthz(lifecycle)

    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched",
            extra={"event": "route_matched", "route": request.path},
        )
    response = filesystem.serve_http(request, request.path)
    ROUTER_LOGGER.info(
        "Static request served",
        extra={
            "event": "static_served",
            "route": request.path,
            "method": request.method,
            "status_code": response.status_code,
        },
    )
    return response
