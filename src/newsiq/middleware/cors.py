"""CORS for the NewsIQ web client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsiq.config import Settings

# Headers the hosted-auth client library attaches to every call
_CLIENT_HEADERS = ["authorization", "content-type", "x-client-info", "apikey", "x-request-id"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
        allow_headers=_CLIENT_HEADERS,
        expose_headers=["X-Request-Id", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
    )
