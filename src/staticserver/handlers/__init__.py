"""
=============================================================================
HANDLERS
=============================================================================

Code that produces a response for a routed request. A static file server
has exactly one: FileResponder, which opens the file and hands back a
streaming response (or a 404/500).

=============================================================================
"""

from .static import FileResponder

__all__ = ["FileResponder"]
