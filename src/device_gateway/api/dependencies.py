"""FastAPI dependencies resolving per-app collaborators from `app.state`."""

from fastapi import Request

from ..config import Settings
from ..core.token_store import TokenStore
from .upstream import UpstreamClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def get_upstream(request: Request) -> UpstreamClient:
    return request.app.state.upstream
