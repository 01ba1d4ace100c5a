"""offlined: HTTP daemon in front of the offline engine.

Exposes offline_library through a proxy endpoint for the host application
plus a small control API and an SSE event stream.
"""

__version__ = "0.1.0"
