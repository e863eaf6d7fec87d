"""Account management shared by every name/email/password resource.

``users`` and ``toko`` are two instances of ``AccountService`` over
different record stores; all business rules live here once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from app.adapters.store.base import AbstractRecordStore, Record
from app.core.errors import (
    DuplicateKeyAppError,
    ErrorCode,
    ForbiddenAppError,
    NotFoundAppError,
)
from app.core.security import hash_password, verify_password
from app.schemas.listing import PageResult
from app.services.list_service import execute_list
from app.services.query_builder import build_list_query

logger = logging.getLogger(__name__)

SEARCH_FIELDS: tuple[str, ...] = ("name", "email")
SORTABLE_FIELDS: tuple[str, ...] = ("id", "name", "email")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def to_public(record: Record) -> dict[str, Any]:
    """Drop secrets from a stored account."""
    return {"id": record["id"], "name": record.get("name"), "email": record.get("email")}


@dataclass
class AccountService:
    """CRUD, listing and credential checks for one account collection.

    Attributes:
        store: Collection holding the accounts.
        resource: Collection name used in logs and error details.
        label: Human-readable singular noun for error messages.
        bcrypt_rounds: Cost factor for new password hashes.
    """

    store: AbstractRecordStore
    resource: str
    label: str
    bcrypt_rounds: int = 12

    def list_accounts(
        self,
        raw_params: Mapping[str, Any],
        *,
        default_page_size: int = 10,
        max_page_size: int | None = None,
    ) -> PageResult:
        list_query = build_list_query(
            raw_params,
            search_fields=SEARCH_FIELDS,
            sortable_fields=SORTABLE_FIELDS,
            default_page_size=default_page_size,
            max_page_size=max_page_size,
        )
        return execute_list(self.store, list_query, project=to_public)

    def get_account(self, account_id: str) -> dict[str, Any]:
        record = self.store.find_by_id(account_id)
        if record is None:
            raise NotFoundAppError(
                f"Unknown {self.label}",
                details={"resource": self.resource, "record_id": account_id},
            )
        return to_public(record)

    def email_is_registered(self, email: str, *, exclude_id: str | None = None) -> bool:
        record = self.store.find_by_field("email", normalize_email(email))
        return record is not None and record["id"] != exclude_id

    def _ensure_email_available(self, email: str, *, exclude_id: str | None = None) -> None:
        if self.email_is_registered(email, exclude_id=exclude_id):
            raise DuplicateKeyAppError(
                code=ErrorCode.EMAIL_ALREADY_TAKEN,
                message="Email is already registered",
                details={"field": "email", "resource": self.resource},
            )

    def create_account(
        self,
        name: str,
        email: str,
        password: str,
        password_confirm: str,
    ) -> dict[str, Any]:
        """Register a new account.

        Raises:
            ForbiddenAppError: INVALID_PASSWORD when the confirmation differs.
            DuplicateKeyAppError: When the email is already registered.
        """
        if password != password_confirm:
            raise ForbiddenAppError(
                code=ErrorCode.INVALID_PASSWORD,
                message="Password confirmation mismatched",
            )

        email = normalize_email(email)
        self._ensure_email_available(email)

        # The store enforces uniqueness again, closing the check-then-insert race.
        record = self.store.insert(
            {
                "name": name,
                "email": email,
                "password": hash_password(password, rounds=self.bcrypt_rounds),
            }
        )
        logger.info(
            "account.created",
            extra={"resource": self.resource, "record_id": record["id"]},
        )
        return {"name": record["name"], "email": record["email"]}

    def ensure_account(self, name: str, email: str, password: str) -> bool:
        """Create the account unless the email is already registered.

        Returns:
            True if a new account was created.
        """
        if self.email_is_registered(email):
            return False
        try:
            self.create_account(name, email, password, password)
        except DuplicateKeyAppError:
            return False
        return True

    def update_account(self, account_id: str, name: str, email: str) -> dict[str, Any]:
        """Change name and email; the account may keep its own email."""
        email = normalize_email(email)
        self._ensure_email_available(email, exclude_id=account_id)

        if not self.store.update_by_id(account_id, {"name": name, "email": email}):
            raise NotFoundAppError(
                f"Unknown {self.label}",
                details={"resource": self.resource, "record_id": account_id},
            )
        logger.info("account.updated", extra={"resource": self.resource, "record_id": account_id})
        return {"id": account_id}

    def delete_account(self, account_id: str) -> dict[str, Any]:
        if not self.store.delete_by_id(account_id):
            raise NotFoundAppError(
                f"Unknown {self.label}",
                details={"resource": self.resource, "record_id": account_id},
            )
        logger.info("account.deleted", extra={"resource": self.resource, "record_id": account_id})
        return {"id": account_id}

    def check_password(self, account_id: str, password: str) -> bool:
        record = self.store.find_by_id(account_id)
        return verify_password(password, record.get("password") if record else None)

    def change_password(
        self,
        account_id: str,
        password_old: str,
        password_new: str,
        password_confirm: str,
    ) -> dict[str, Any]:
        """Replace the password after confirming the old one.

        Raises:
            ForbiddenAppError: INVALID_PASSWORD on confirmation mismatch,
                INVALID_CREDENTIALS when the old password is wrong.
            NotFoundAppError: If the account does not exist.
        """
        if password_new != password_confirm:
            raise ForbiddenAppError(
                code=ErrorCode.INVALID_PASSWORD,
                message="Password confirmation mismatched",
            )

        record = self.store.find_by_id(account_id)
        if record is None:
            raise NotFoundAppError(
                f"Unknown {self.label}",
                details={"resource": self.resource, "record_id": account_id},
            )
        if not verify_password(password_old, record.get("password")):
            raise ForbiddenAppError(code=ErrorCode.INVALID_CREDENTIALS, message="Wrong password")

        self.store.update_by_id(
            account_id,
            {"password": hash_password(password_new, rounds=self.bcrypt_rounds)},
        )
        logger.info(
            "account.password_changed",
            extra={"resource": self.resource, "record_id": account_id},
        )
        return {"id": account_id}

    def authenticate(self, email: str, password: str) -> dict[str, Any] | None:
        """Return the public account for valid credentials, else None.

        Unknown emails still pay for a bcrypt comparison.
        """
        record = self.store.find_by_field("email", normalize_email(email))
        if not verify_password(password, record.get("password") if record else None):
            return None
        return to_public(record)  # type: ignore[arg-type]
