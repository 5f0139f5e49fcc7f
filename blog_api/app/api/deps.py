"""
FastAPI dependencies giving handlers access to the services.

``create_app`` builds one instance of each service from its
``Settings`` and stores them on ``app.state``; these helpers read them
back for the current request.
"""

from fastapi import Request

from ..core.config import Settings
from ..core.security import TokenService
from ..services.post_service import PostService
from ..services.query_service import QueryService
from ..services.user_service import UserService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service
