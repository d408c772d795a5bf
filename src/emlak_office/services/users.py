"""Back-office user administration service."""
from __future__ import annotations

import dataclasses
from typing import Any, List, Optional

from emlak_office.core.exceptions import EmlakOfficeError
from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import LOCKOUT_FOREVER, User, UserRole
from emlak_office.domain.listings import UserFilters, query_users
from emlak_office.domain.query import QueryResult
from emlak_office.domain.wire import online_user_from_wire, user_from_wire, user_to_wire
from emlak_office.services.api_client import Endpoints
from emlak_office.services.base import EntityService
from emlak_office.services.entity_cache import EntityKind

LOGGER = get_logger(__name__)


class UserService(EntityService):
    """User CRUD, role/password changes, locking and presence."""

    kind = EntityKind.USERS
    label = "user"

    def _load_all(self) -> List[User]:
        return self._fetch_list(Endpoints.USERS, user_from_wire)

    def list_users(self) -> List[User]:
        return self.list_all()

    def get_user(self, user_id: str) -> User:
        return self._fetch_item(Endpoints.user(user_id), user_from_wire)

    def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: str = UserRole.USER.value,
    ) -> Optional[User]:
        """Create an account; the password is sent with its confirmation."""
        payload = {
            "username": username,
            "email": email,
            "password": password,
            "confirmPassword": password,
            "role": getattr(role, "value", role),
        }
        response = self.client.post(Endpoints.USERS, json=payload)
        self.invalidate()
        LOGGER.info(f"Created user {username}")
        return self._parse_write_response(response, user_from_wire, None)

    def update_user(self, user: User) -> User:
        response = self.client.put(Endpoints.user(user.id), json=user_to_wire(user))
        self.invalidate()
        return self._parse_write_response(response, user_from_wire, user)

    def delete_user(self, user_id: str) -> None:
        self.client.delete(Endpoints.user(user_id))
        self.invalidate()
        LOGGER.info(f"Deleted user {user_id}")

    def change_role(self, user_id: str, role: str) -> Optional[User]:
        role = getattr(role, "value", role)
        response = self.client.put(Endpoints.user_role(user_id), json=role)
        self.invalidate()
        LOGGER.info(f"User {user_id} role set to {role}")
        return self._parse_write_response(response, user_from_wire, None)

    def change_password(self, user_id: str, new_password: str) -> None:
        self.client.put(
            Endpoints.user_password(user_id),
            json={"newPassword": new_password, "confirmPassword": new_password},
        )
        LOGGER.info(f"Password changed for user {user_id}")

    def change_own_password(self, current_password: str, new_password: str) -> None:
        """Change the signed-in user's password."""
        self.client.post(
            Endpoints.CHANGE_OWN_PASSWORD,
            json={"currentPassword": current_password, "newPassword": new_password},
        )
        LOGGER.info("Own password changed")

    def toggle_lock(self, user_id: str, lock: bool = True) -> Optional[User]:
        """
        Lock or unlock an account.

        When users are cached, the new lock state is shown immediately and
        rolled back if the request fails.
        """
        lockout_end = LOCKOUT_FOREVER if lock else None

        def apply(users: List[Any]) -> List[Any]:
            return [
                dataclasses.replace(u, lockout_end=lockout_end) if u.id == user_id else u
                for u in users
            ]

        if self.cache.peek(self.kind) is None:
            response = self.client.put(Endpoints.user_lock(user_id), json=lock)
            self.invalidate()
        else:
            with self.cache.optimistic(self.kind, apply):
                response = self.client.put(Endpoints.user_lock(user_id), json=lock)

        LOGGER.info(f"User {user_id} {'locked' if lock else 'unlocked'}")
        return self._parse_write_response(response, user_from_wire, None)

    def get_online_users(self) -> List[User]:
        """Currently online users; empty on any error."""
        try:
            return self._fetch_list(Endpoints.ONLINE_USERS, online_user_from_wire)
        except EmlakOfficeError as e:
            LOGGER.warning(f"Online users unavailable: {e}")
            return []

    def query(self, filters: Optional[UserFilters] = None) -> QueryResult[User]:
        return query_users(self.list_users(), filters)


__all__ = ["UserService"]
