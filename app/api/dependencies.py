"""FastAPI dependencies - wiring services held in ``app.state`` into routes."""

from __future__ import annotations

from typing import Callable

from fastapi import Request

from app.services.account_service import AccountService


def account_service_dependency(resource: str) -> Callable[[Request], AccountService]:
    """Build a dependency returning the AccountService for ``resource``.

    Services are created by the app factory and stored in
    ``app.state.account_services``.
    """

    def get_account_service(request: Request) -> AccountService:
        return request.app.state.account_services[resource]

    get_account_service.__name__ = f"get_{resource}_service"
    return get_account_service


get_users_service = account_service_dependency("users")
