"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can produce, with their reason phrases.

=============================================================================
WHICH CODES, AND WHEN
=============================================================================

A static file server only ever needs a handful of codes:

    ┌────────┬─────────────────────────┬──────────────────────────────────┐
    │  Code  │  Phrase                 │  Produced when                   │
    ├────────┼─────────────────────────┼──────────────────────────────────┤
    │  200   │  OK                     │  File opened and streamed        │
    │  400   │  Bad Request            │  Request bytes could not be read │
    │        │                         │  or parsed                       │
    │  403   │  Forbidden              │  Target contains ".."            │
    │  404   │  Not Found              │  File could not be opened        │
    │  500   │  Internal Server Error  │  Failure after the file opened   │
    └────────┴─────────────────────────┴──────────────────────────────────┘

The first digit tells the client who is at fault:
    2xx - success
    4xx - the client sent something we won't serve
    5xx - we failed while serving something valid

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200                        # File served
    BAD_REQUEST = 400               # Malformed request syntax
    FORBIDDEN = 403                 # Path traversal attempt
    NOT_FOUND = 404                 # No such file under the root
    INTERNAL_SERVER_ERROR = 500     # Unexpected failure while serving

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
