"""HTTP API for the feed relay."""

from src.api.app import create_app
from src.api.responses import ServiceResponse, to_service_response


__all__ = [
    "ServiceResponse",
    "create_app",
    "to_service_response",
]
