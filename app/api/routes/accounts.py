"""CRUD and paginated listing routes shared by every account resource.

``build_account_router("users", ...)`` and ``build_account_router("toko", ...)``
produce identical route sets over different collections.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import account_service_dependency
from app.core.auth import get_session_store, require_identity
from app.core.config import settings
from app.schemas.account import (
    AccountCreatedResponse,
    AccountCreateRequest,
    AccountIdResponse,
    AccountResponse,
    AccountUpdateRequest,
    PasswordChangeRequest,
)
from app.schemas.listing import PageResult
from app.services.account_service import AccountService


def build_account_router(
    resource: str,
    *,
    tag: str,
    revokes_sessions: bool = False,
) -> APIRouter:
    """Create the router for one account collection.

    Args:
        resource: Collection name, also the URL segment (``/users``).
        tag: OpenAPI tag.
        revokes_sessions: Whether deleting or re-passwording an account must
            invalidate its login sessions (true for the collection used by login).

    Returns:
        APIRouter with list/create/detail/update/delete/change-password routes,
        all requiring a bearer token.
    """

    router = APIRouter(
        prefix=f"/{resource}",
        tags=[tag],
        dependencies=[Depends(require_identity)],
    )
    Service = Annotated[AccountService, Depends(account_service_dependency(resource))]

    @router.get("", response_model=PageResult, summary=f"List {resource}")
    def list_accounts(
        service: Service,
        page_number: Annotated[str | None, Query(description="1-based page index (default 1)")] = None,
        page_size: Annotated[str | None, Query(description="Items per page (default 10)")] = None,
        search: Annotated[
            str | None, Query(description="Case-insensitive substring of name or email")
        ] = None,
        sort: Annotated[
            str | None, Query(description="field[:asc|desc], default name:asc")
        ] = None,
    ) -> PageResult:
        """Paginated, searchable, sortable list.

        Query values are validated by the query builder so malformed input
        yields INVALID_QUERY_PARAMETERS rather than a framework error.
        """
        return service.list_accounts(
            {
                "page_number": page_number,
                "page_size": page_size,
                "search": search,
                "sort": sort,
            },
            default_page_size=settings.app.default_page_size,
            max_page_size=settings.app.max_page_size,
        )

    @router.post("", response_model=AccountCreatedResponse, summary=f"Create {resource}")
    def create_account(body: AccountCreateRequest, service: Service) -> AccountCreatedResponse:
        created = service.create_account(
            body.name, body.email, body.password, body.password_confirm
        )
        return AccountCreatedResponse(**created)

    @router.get("/{account_id}", response_model=AccountResponse)
    def get_account(account_id: str, service: Service) -> AccountResponse:
        return AccountResponse(**service.get_account(account_id))

    @router.put("/{account_id}", response_model=AccountIdResponse)
    def update_account(
        account_id: str, body: AccountUpdateRequest, service: Service
    ) -> AccountIdResponse:
        return AccountIdResponse(**service.update_account(account_id, body.name, body.email))

    @router.delete("/{account_id}", response_model=AccountIdResponse)
    def delete_account(account_id: str, service: Service) -> AccountIdResponse:
        result = service.delete_account(account_id)
        if revokes_sessions:
            get_session_store().revoke_user(account_id)
        return AccountIdResponse(**result)

    @router.post("/{account_id}/change-password", response_model=AccountIdResponse)
    def change_password(
        account_id: str, body: PasswordChangeRequest, service: Service
    ) -> AccountIdResponse:
        result = service.change_password(
            account_id, body.password_old, body.password_new, body.password_confirm
        )
        # Existing sessions were granted under the old password.
        if revokes_sessions:
            get_session_store().revoke_user(account_id)
        return AccountIdResponse(**result)

    return router
