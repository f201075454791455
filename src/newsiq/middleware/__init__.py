"""HTTP middleware stack for the NewsIQ API."""

from fastapi import FastAPI

from newsiq.config import Settings
from newsiq.middleware.cors import setup_cors
from newsiq.middleware.error_handler import setup_error_handlers
from newsiq.middleware.logging import setup_logging
from newsiq.middleware.rate_limit import RateLimitMiddleware
from newsiq.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure logging, error handlers and middleware.

    Starlette runs middleware outermost-last-added. CORS goes on last so its
    headers reach 429 and 500 responses produced further in.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
