from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from collections import defaultdict
from config import settings
import time

# In-memory sliding window limiter, per process
class RateLimiter:
    def __init__(self):
        self.requests = defaultdict(list)
        self.cleanup_interval = 60
        self.last_cleanup = time.time()

    def is_allowed(self, key: str, max_requests: int = 100, window_seconds: int = 60) -> bool:
        """
        Check if request is allowed based on rate limit
        Args:
            key: Unique identifier (IP address, IP + scope)
            max_requests: Maximum requests allowed in the time window
            window_seconds: Time window in seconds
        """
        current_time = time.time()

        if current_time - self.last_cleanup > self.cleanup_interval:
            self.cleanup()
            self.last_cleanup = current_time

        cutoff_time = current_time - window_seconds
        self.requests[key] = [req_time for req_time in self.requests[key] if req_time > cutoff_time]

        if len(self.requests[key]) >= max_requests:
            return False

        self.requests[key].append(current_time)
        return True

    def cleanup(self):
        """Remove old entries"""
        cutoff_time = time.time() - 300

        for key in list(self.requests.keys()):
            self.requests[key] = [req_time for req_time in self.requests[key] if req_time > cutoff_time]
            if not self.requests[key]:
                del self.requests[key]

    def reset(self):
        self.requests.clear()

rate_limiter = RateLimiter()

def client_ip(request: Request) -> str:
    ip = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if not ip and request.client:
        ip = request.client.host
    return ip or "unknown"

class SecurityMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting, request size limits and security headers
    """

    async def dispatch(self, request: Request, call_next):
        ip = client_ip(request)

        if not rate_limiter.is_allowed(ip, max_requests=settings.rate_limit_requests, window_seconds=settings.rate_limit_window_seconds):
            return Response(
                content="Rate limit exceeded. Please try again later.",
                status_code=429,
                headers={"Retry-After": str(settings.rate_limit_window_seconds)}
            )

        # Stricter limit for sign-in / sign-up
        if request.url.path.startswith("/api/auth/"):
            if not rate_limiter.is_allowed(
                f"{ip}:auth",
                max_requests=settings.auth_rate_limit_requests,
                window_seconds=settings.auth_rate_limit_window_seconds
            ):
                return Response(
                    content="Too many authentication attempts. Please try again later.",
                    status_code=429,
                    headers={"Retry-After": str(settings.auth_rate_limit_window_seconds)}
                )

        # Five KYC documents of up to 5MB each plus form overhead
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > settings.max_request_size_bytes:
            return Response(
                content="Request body too large",
                status_code=413
            )

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(self), microphone=(), camera=()"

        if request.url.path in ["/docs", "/redoc"] or request.url.path.startswith("/openapi"):
            # Swagger UI / ReDoc load assets from the CDN
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "img-src 'self' data: https:; "
                "font-src 'self' data: https://cdn.jsdelivr.net; "
                "connect-src 'self'; "
                "frame-ancestors 'none';"
            )
        else:
            # Map tiles for the tracking view come from OpenStreetMap
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "img-src 'self' data: https://*.tile.openstreetmap.org; "
                "connect-src 'self'; "
                "frame-ancestors 'none'; "
                "base-uri 'self'; "
                "form-action 'self';"
            )

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
