"""User service - registration, profiles and role administration."""

# flake8: noqa: E501

import logging
from typing import Any, Dict, List, Optional

from apps.api.auth import hash_password, verify_password
from apps.api.auth.policy import normalize_roles
from apps.api.exceptions import BadRequestError, NotFoundError
from apps.api.models.pydantic import (
    RegisterRequest,
    RosterEntryDTO,
    UpdateProfileRequest,
    UserDTO,
    UserRolesDTO,
)

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user operations."""

    def __init__(self, db):
        self.db = db

    def _get_row(self, user_id: int):
        user = self.db.users[user_id]
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_by_email(self, email: str):
        return self.db(self.db.users.email == email.strip().lower()).select().first()

    def get_user(self, user_id: int) -> Dict[str, Any]:
        user = self._get_row(user_id)
        return UserDTO.from_pydal_row(user, roles=normalize_roles(user.roles)).model_dump(mode="json")

    def register(self, payload: RegisterRequest) -> Dict[str, Any]:
        """
        Create a user with an empty role set.

        Raises:
            BadRequestError: If the email is already registered
        """
        if self.get_by_email(payload.email):
            raise BadRequestError("User already exists")

        user_id = self.db.users.insert(
            email=payload.email,
            password_hash=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            middle_name=payload.middle_name or None,
            roles=[],
        )
        self.db.commit()
        logger.info("Registered user %s", user_id)
        return self.get_user(user_id)

    def authenticate(self, email: str, password: str) -> Optional[Any]:
        """Return the user row when the credentials match, else None."""
        user = self.get_by_email(email)
        if not user or not verify_password(user, password):
            return None
        return user

    def list_roster(self) -> List[Dict[str, Any]]:
        rows = self.db(self.db.users).select(orderby=self.db.users.email)
        return [RosterEntryDTO.from_pydal_row(row).model_dump(mode="json") for row in rows]

    def list_with_roles(self) -> List[Dict[str, Any]]:
        rows = self.db(self.db.users).select(orderby=self.db.users.email)
        return [
            UserRolesDTO.from_pydal_row(row, roles=normalize_roles(row.roles)).model_dump(mode="json")
            for row in rows
        ]

    def update_roles(self, user_id: int, roles: List[str]) -> Dict[str, Any]:
        """
        Replace a user's role set.

        Duplicates are collapsed. A user_admin may remove their own
        user_admin role.
        """
        user = self._get_row(user_id)
        new_roles = normalize_roles(roles)
        user.update_record(roles=new_roles)
        self.db.commit()
        logger.info("Roles of user %s set to %s", user_id, new_roles)
        return {"id": user.id, "roles": new_roles}

    def update_profile(self, user_id: int, payload: UpdateProfileRequest) -> Dict[str, Any]:
        user = self._get_row(user_id)
        user.update_record(
            first_name=payload.first_name,
            last_name=payload.last_name,
            middle_name=payload.middle_name or None,
            organization=payload.organization or None,
            department=payload.department or None,
        )
        self.db.commit()
        return self.get_user(user_id)

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """
        Raises:
            BadRequestError: If ``current_password`` does not match
        """
        user = self._get_row(user_id)
        if not verify_password(user, current_password):
            raise BadRequestError("Current password is incorrect")
        user.update_record(password_hash=hash_password(new_password))
        self.db.commit()
        logger.info("Password changed for user %s", user_id)
