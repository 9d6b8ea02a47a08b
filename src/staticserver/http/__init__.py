"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows about HTTP but nothing about sockets:

    request.py       bytes → HTTPRequest
    router.py        target → file path (or Forbidden)
    response.py      HTTPResponse model, builders, error responses
    mime_types.py    file path → Content-Type
    status_codes.py  HTTPStatus enum

The core/ package moves bytes; this package decides what they mean.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    FileBody,
    error_response,
    bad_request,    # 400 Bad Request
    forbidden,      # 403 Forbidden
    not_found,      # 404 Not Found
    internal_error, # 500 Internal Server Error
)
from .router import RequestRouter, ForbiddenPathError
from .status_codes import HTTPStatus
from .mime_types import MIME_TYPES, DEFAULT_MIME_TYPE, get_mime_type

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    # Responses
    "HTTPResponse",
    "ResponseBuilder",
    "FileBody",
    "error_response",
    "bad_request",
    "forbidden",
    "not_found",
    "internal_error",

    # Routing
    "RequestRouter",
    "ForbiddenPathError",

    # Status codes
    "HTTPStatus",

    # MIME types
    "MIME_TYPES",
    "DEFAULT_MIME_TYPE",
    "get_mime_type",
]
