"""Callback URL generation with reverse proxy support."""

import logging

from starlette.requests import Request

logger = logging.getLogger(__name__)


class URLBuilder:
    """Build the absolute callback URL for the current request.

    Handles:
    - Reverse proxy header detection (X-Forwarded-Proto, X-Forwarded-Scheme,
      X-Forwarded-Host) when ``trust_proxy`` is enabled
    - Fallback to the request's own scheme and host
    """

    def __init__(self, trust_proxy: bool = False):
        self.trust_proxy = trust_proxy

    def get_base_url(self, request: Request) -> str:
        """Get the base URL (scheme and authority) the client used to reach us."""
        scheme = self._detect_scheme(request)
        host = self._detect_host(request)
        return f"{scheme}://{host}"

    def build_callback_url(self, request: Request, callback_path: str) -> str:
        """Build a complete callback URL.

        The ASGI ``root_path`` is kept, so routes mounted under a sub-path
        (``Mount("/api", ...)``) or served with ``--root-path`` get a callback
        the provider can reach.

        Args:
            request: The inbound request.
            callback_path: The callback path relative to the mount point
                (e.g., '/auth/stackoverflow/callback')

        Returns:
            Complete callback URL
        """
        base_url = self.get_base_url(request)
        root_path = request.scope.get("root_path", "").strip("/")
        callback_path = callback_path.lstrip("/")
        if root_path:
            return f"{base_url}/{root_path}/{callback_path}"
        return f"{base_url}/{callback_path}"

    def _detect_scheme(self, request: Request) -> str:
        """Detect the URL scheme.

        Priority order:
        1. X-Forwarded-Proto header (if trust_proxy enabled)
        2. X-Forwarded-Scheme header (if trust_proxy enabled)
        3. Request scheme
        4. Default to 'http'
        """
        if self.trust_proxy:
            forwarded_proto = request.headers.get("x-forwarded-proto")
            if forwarded_proto:
                # Handle comma-separated values (take first)
                scheme = forwarded_proto.split(",")[0].strip().lower()
                if scheme in ("http", "https"):
                    logger.debug(f"Using scheme from X-Forwarded-Proto header: {scheme}")
                    return scheme

            forwarded_scheme = request.headers.get("x-forwarded-scheme")
            if forwarded_scheme:
                scheme = forwarded_scheme.strip().lower()
                if scheme in ("http", "https"):
                    logger.debug(f"Using scheme from X-Forwarded-Scheme header: {scheme}")
                    return scheme

        scheme = request.url.scheme.lower()
        if scheme in ("http", "https"):
            return scheme
        return "http"

    def _detect_host(self, request: Request) -> str:
        if self.trust_proxy:
            forwarded_host = request.headers.get("x-forwarded-host")
            if forwarded_host:
                return forwarded_host.split(",")[0].strip()
        return request.url.netloc
