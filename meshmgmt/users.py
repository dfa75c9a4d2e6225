"""Users of an account, their roles and the view the dashboard shows of them."""

from __future__ import annotations

import copy as _copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from meshmgmt.peer import ZERO_TIME
from meshmgmt.settings import Settings

USER_ISSUED_API = "api"
USER_ISSUED_INTEGRATION = "integration"


class UserRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    USER = "user"
    UNKNOWN = "unknown"
    BILLING_ADMIN = "billing_admin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"
    INVITED = "invited"


def str_role_to_user_role(str_role: str) -> UserRole:
    """The role named by the string, case-insensitively, or UNKNOWN."""
    lowered = str_role.lower()
    if lowered == UserRole.UNKNOWN.value:
        return UserRole.UNKNOWN
    try:
        return UserRole(lowered)
    except ValueError:
        return UserRole.UNKNOWN


@dataclass
class AppMetadata:
    """Application metadata the identity provider keeps for a user."""

    wt_pending_invite: Optional[bool] = None


@dataclass
class UserData:
    """A user as the identity provider knows them."""

    id: str = ""
    email: str = ""
    name: str = ""
    app_metadata: AppMetadata = field(default_factory=AppMetadata)


@dataclass
class UserPermissions:
    dashboard_view: str = ""


@dataclass
class UserInfo:
    """The view of a user returned to API clients."""

    id: str = ""
    email: str = ""
    name: str = ""
    role: str = ""
    auto_groups: list[str] = field(default_factory=list)
    status: str = ""
    is_service_user: bool = False
    is_blocked: bool = False
    non_deletable: bool = False
    last_login: datetime = ZERO_TIME
    issued: str = ""
    integration_reference: dict[str, Any] = field(default_factory=dict)
    permissions: UserPermissions = field(default_factory=UserPermissions)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """A user of the system."""

    id: str = ""
    account_id: str = ""
    role: UserRole = UserRole.USER
    is_service_user: bool = False
    non_deletable: bool = False
    service_user_name: str = ""
    auto_groups: list[str] = field(default_factory=list)
    pats: dict[str, Any] = field(default_factory=dict)
    blocked: bool = False
    last_login: Optional[datetime] = None
    created_at: datetime = ZERO_TIME
    issued: str = USER_ISSUED_API
    integration_reference: dict[str, Any] = field(default_factory=dict)

    def is_blocked(self) -> bool:
        return self.blocked

    def last_dashboard_login_changed(self, last_login: datetime) -> bool:
        """True if the given login is newer than a previously recorded one."""
        known = self.last_login_time()
        return last_login > known and known != ZERO_TIME

    def last_login_time(self) -> datetime:
        """The last login time, or the zero time if the user never logged in."""
        return self.last_login if self.last_login is not None else ZERO_TIME

    def has_admin_power(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.OWNER)

    def is_admin_or_service_user(self) -> bool:
        return self.has_admin_power() or self.is_service_user

    def is_regular_user(self) -> bool:
        return not self.has_admin_power() and not self.is_service_user

    def to_user_info(
        self, user_data: Optional[UserData], settings: Settings
    ) -> UserInfo:
        """Build the API view of the user, merged with identity provider data."""
        dashboard_view = "full"
        if not self.has_admin_power():
            dashboard_view = "blocked" if settings.regular_users_view_blocked else "limited"
        permissions = UserPermissions(dashboard_view=dashboard_view)

        if user_data is None:
            return UserInfo(
                id=self.id,
                email="",
                name=self.service_user_name,
                role=UserRole(self.role).value,
                auto_groups=list(self.auto_groups),
                status=UserStatus.ACTIVE.value,
                is_service_user=self.is_service_user,
                is_blocked=self.blocked,
                last_login=self.last_login_time(),
                issued=self.issued,
                permissions=permissions,
            )

        if user_data.id != self.id:
            raise ValueError(f"wrong UserData provided for user {self.id}")

        status = UserStatus.ACTIVE
        if user_data.app_metadata.wt_pending_invite:
            status = UserStatus.INVITED

        return UserInfo(
            id=self.id,
            email=user_data.email,
            name=user_data.name,
            role=UserRole(self.role).value,
            auto_groups=list(self.auto_groups),
            status=status.value,
            is_service_user=self.is_service_user,
            is_blocked=self.blocked,
            last_login=self.last_login_time(),
            issued=self.issued,
            permissions=permissions,
        )

    def copy(self) -> User:
        return User(
            id=self.id,
            account_id=self.account_id,
            role=self.role,
            is_service_user=self.is_service_user,
            non_deletable=self.non_deletable,
            service_user_name=self.service_user_name,
            auto_groups=list(self.auto_groups),
            pats={key: _copy.deepcopy(value) for key, value in self.pats.items()},
            blocked=self.blocked,
            last_login=self.last_login,
            created_at=self.created_at,
            issued=self.issued,
            integration_reference=dict(self.integration_reference),
        )


def new_user(
    user_id: str,
    role: UserRole,
    is_service_user: bool,
    non_deletable: bool,
    service_user_name: str,
    auto_groups: list[str],
    issued: str,
) -> User:
    """Create a user, stamped with the current UTC time."""
    return User(
        id=user_id,
        role=role,
        is_service_user=is_service_user,
        non_deletable=non_deletable,
        service_user_name=service_user_name,
        auto_groups=list(auto_groups),
        issued=issued,
        created_at=_now(),
    )


def new_regular_user(user_id: str) -> User:
    return new_user(user_id, UserRole.USER, False, False, "", [], USER_ISSUED_API)


def new_admin_user(user_id: str) -> User:
    return new_user(user_id, UserRole.ADMIN, False, False, "", [], USER_ISSUED_API)


def new_owner_user(user_id: str) -> User:
    return new_user(user_id, UserRole.OWNER, False, False, "", [], USER_ISSUED_API)