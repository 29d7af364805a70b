"""Request validation performed before routing."""

from typing import Iterable, Optional

from jailfs.domain.http_types import HttpRequest, HttpResponse
from jailfs.domain.response_builders import (
    bad_request_response,
    method_not_allowed_response,
)


def enforce_allowed_method(
    request: HttpRequest, allowed_methods: Iterable[str]
) -> Optional[HttpResponse]:
    """Ensure the HTTP method is part of the supported allowlist."""
    if request.method in allowed_methods:
        return None
    return method_not_allowed_response(request, allowed_methods)


def enforce_well_formed_path(request: HttpRequest) -> Optional[HttpResponse]:
    """Reject paths that are not origin-form or that carry a NUL byte.

    Traversal segments are left alone; resolution below the served root
    absorbs them.
    """
    if not request.path.startswith("/") or "\x00" in request.path:
        return bad_request_response(request)
    return None


def validate_request(
    request: HttpRequest, allowed_methods: Iterable[str]
) -> Optional[HttpResponse]:
    """Return an error response when the request fails validation checks."""
    method_error = enforce_allowed_method(request, allowed_methods)
    if method_error is not None:
        return method_error
    return enforce_well_formed_path(request)
