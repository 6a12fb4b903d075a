"""User management, including the administrator-only operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class UserRole(str, Enum):
    """Role a user plays in the shop."""

    ADMIN = "ADMIN"
    REPARTIDOR = "REPARTIDOR"
    CLIENT = "CLIENT"


class UserServiceError(Exception):
    """Base class for errors raised by the user service."""

    default_message = "error de usuario"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class UserNotFoundError(UserServiceError, LookupError):
    default_message = "usuario no encontrado"


class EmailAlreadyExistsError(UserServiceError, ValueError):
    default_message = "el correo electrónico ya está en uso"


class PhoneAlreadyExistsError(UserServiceError, ValueError):
    default_message = "el número de teléfono ya está en uso"


class CannotDeactivateAdminError(UserServiceError, PermissionError):
    default_message = "no se puede desactivar un usuario administrador"


class CannotDeactivateSelfError(UserServiceError, PermissionError):
    default_message = "no puedes desactivarte a ti mismo"


@dataclass
class PaginatedUsers:
    """One page of users together with the paging figures."""

    users: list[Any] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_pages: int = 0


class _UserRepository(Protocol):
    def create(self, user: Any) -> None: ...
    def find_by_id(self, user_id: str) -> Any: ...
    def find_by_email(self, email: str) -> Any: ...
    def find_by_role(self, role: Any) -> list[Any]: ...
    def find_all(self) -> list[Any]: ...
    def update(self, user: Any) -> None: ...
    def delete(self, user_id: str) -> None: ...
    def find_all_with_pagination(
        self, offset: int, limit: int, role: Any
    ) -> tuple[list[Any], int]: ...


def _coerce_role(role_filter: str) -> UserRole | str:
    try:
        return UserRole(role_filter)
    except ValueError:
        return role_filter


class UserService:
    """Business operations on users."""

    def __init__(self, repo: _UserRepository) -> None:
        self._repo = repo

    def create(self, user: Any) -> None:
        self._repo.create(user)

    def get_by_id(self, user_id: str) -> Any:
        return self._repo.find_by_id(user_id)

    def get_by_email(self, email: str) -> Any:
        return self._repo.find_by_email(email)

    def get_by_role(self, role: UserRole | str) -> list[Any]:
        return self._repo.find_by_role(role)

    def get_all(self) -> list[Any]:
        return self._repo.find_all()

    def update(self, user: Any) -> None:
        self._repo.update(user)

    def delete(self, user_id: str) -> None:
        self._repo.delete(user_id)

    def _require_user(self, user_id: str) -> Any:
        try:
            user = self._repo.find_by_id(user_id)
        except LookupError as exc:
            raise UserNotFoundError() from exc
        if user is None:
            raise UserNotFoundError()
        return user

    def get_users_with_pagination(
        self, page: int, page_size: int, role_filter: str
    ) -> PaginatedUsers:
        """Return one page of users, optionally limited to one role.

        A page below 1 becomes 1; a page size outside 1..100 becomes 10.
        """
        if page < 1:
            page = 1
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            page_size = DEFAULT_PAGE_SIZE

        offset = (page - 1) * page_size
        role = _coerce_role(role_filter) if role_filter else None

        users, total = self._repo.find_all_with_pagination(offset, page_size, role)
        total_pages = (total + page_size - 1) // page_size

        return PaginatedUsers(
            users=list(users),
            total_count=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        )

    def create_user_admin(self, user: Any, admin_id: str) -> None:
        """Create a user on behalf of an administrator, refusing duplicate e-mails."""
        logger.info(
            "Admin %s creando nuevo usuario: %s (%s)",
            admin_id,
            user.email,
            getattr(user.user_role, "value", user.user_role),
        )
        try:
            existing = self._repo.find_by_email(user.email)
        except LookupError:
            existing = None
        if existing is not None:
            raise EmailAlreadyExistsError()

        try:
            self._repo.create(user)
        except Exception as exc:
            logger.error("Error al crear usuario %s: %s", user.email, exc)
            raise

        logger.info("Usuario %s creado exitosamente por admin %s", user.email, admin_id)

    def update_user_admin(self, user: Any, admin_id: str) -> None:
        logger.info("Admin %s actualizando usuario: %s", admin_id, user.user_id)
        try:
            self._repo.update(user)
        except Exception as exc:
            logger.error("Error al actualizar usuario %s: %s", user.user_id, exc)
            raise
        logger.info(
            "Usuario %s actualizado exitosamente por admin %s", user.user_id, admin_id
        )

    def activate_user(self, user_id: str, admin_id: str) -> None:
        logger.info("Admin %s activando usuario: %s", admin_id, user_id)
        user = self._require_user(user_id)
        user.is_active = True
        try:
            self._repo.update(user)
        except Exception as exc:
            logger.error("Error al activar usuario %s: %s", user_id, exc)
            raise
        logger.info("Usuario %s activado exitosamente por admin %s", user_id, admin_id)

    def deactivate_user(self, user_id: str, admin_id: str) -> None:
        """Deactivate a user; administrators and the caller themself are protected."""
        logger.info("Admin %s intentando desactivar usuario: %s", admin_id, user_id)
        user = self._require_user(user_id)

        if user.user_role == UserRole.ADMIN:
            logger.warning("Intento de desactivar administrador bloqueado: %s", user_id)
            raise CannotDeactivateAdminError()

        if user_id == admin_id:
            logger.warning("Intento de autodesactivación bloqueado: %s", admin_id)
            raise CannotDeactivateSelfError()

        user.is_active = False
        try:
            self._repo.update(user)
        except Exception as exc:
            logger.error("Error al desactivar usuario %s: %s", user_id, exc)
            raise
        logger.info("Usuario %s desactivado exitosamente por admin %s", user_id, admin_id)

    def delete_user_admin(self, user_id: str, admin_id: str) -> None:
        logger.info("Admin %s eliminando usuario: %s", admin_id, user_id)
        self._require_user(user_id)
        try:
            self._repo.delete(user_id)
        except Exception as exc:
            logger.error("Error al eliminar usuario %s: %s", user_id, exc)
            raise
        logger.info("Usuario %s eliminado exitosamente por admin %s", user_id, admin_id)