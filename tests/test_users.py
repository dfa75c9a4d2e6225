from datetime import datetime, timedelta, timezone

import pytest

from meshmgmt.peer import ZERO_TIME
from meshmgmt.settings import Settings
from meshmgmt.users import (
    USER_ISSUED_API,
    AppMetadata,
    User,
    UserData,
    UserRole,
    UserStatus,
    new_admin_user,
    new_owner_user,
    new_regular_user,
    new_user,
    str_role_to_user_role,
)


@pytest.mark.parametrize(
    "text, role",
    [
        ("owner", UserRole.OWNER),
        ("ADMIN", UserRole.ADMIN),
        ("User", UserRole.USER),
        ("billing_admin", UserRole.BILLING_ADMIN),
        ("superuser", UserRole.UNKNOWN),
        ("", UserRole.UNKNOWN),
    ],
)
def test_str_role_to_user_role(text, role):
    assert str_role_to_user_role(text) is role


def test_constructors_set_roles():
    assert new_regular_user("u1").role is UserRole.USER
    assert new_admin_user("u2").role is UserRole.ADMIN
    assert new_owner_user("u3").role is UserRole.OWNER
    user = new_regular_user("u1")
    assert user.issued == USER_ISSUED_API
    assert user.auto_groups == []
    assert user.created_at.tzinfo is not None


def test_role_predicates():
    regular = new_regular_user("u1")
    admin = new_admin_user("u2")
    service = new_user("u3", UserRole.USER, True, False, "svc", [], USER_ISSUED_API)
    assert regular.is_regular_user() and not regular.has_admin_power()
    assert admin.has_admin_power() and admin.is_admin_or_service_user()
    assert service.is_admin_or_service_user() and not service.is_regular_user()


def test_last_login_time_defaults_to_zero():
    user = User(id="u1")
    assert user.last_login_time() == ZERO_TIME


def test_last_dashboard_login_changed():
    then = datetime(2024, 1, 1, tzinfo=timezone.utc)
    user = User(id="u1")
    assert user.last_dashboard_login_changed(then) is False
    user.last_login = then
    assert user.last_dashboard_login_changed(then + timedelta(hours=1)) is True
    assert user.last_dashboard_login_changed(then - timedelta(hours=1)) is False


def test_to_user_info_without_user_data():
    user = new_user("svc1", UserRole.USER, True, False, "robot", ["g1"], USER_ISSUED_API)
    info = user.to_user_info(None, Settings())
    assert info.id == "svc1"
    assert info.name == "robot"
    assert info.email == ""
    assert info.status == UserStatus.ACTIVE.value
    assert info.role == "user"
    assert info.auto_groups == ["g1"]
    assert info.permissions.dashboard_view == "limited"


def test_to_user_info_dashboard_view():
    assert new_admin_user("a").to_user_info(None, Settings()).permissions.dashboard_view == "full"
    blocked = Settings(regular_users_view_blocked=True)
    assert new_regular_user("r").to_user_info(None, blocked).permissions.dashboard_view == "blocked"
    assert new_owner_user("o").to_user_info(None, blocked).permissions.dashboard_view == "full"


def test_to_user_info_with_user_data():
    user = new_admin_user("u1")
    data = UserData(
        id="u1",
        email="alice@example.com",
        name="Alice",
        app_metadata=AppMetadata(wt_pending_invite=True),
    )
    info = user.to_user_info(data, Settings())
    assert info.email == "alice@example.com"
    assert info.name == "Alice"
    assert info.status == UserStatus.INVITED.value
    assert info.role == "admin"


def test_to_user_info_pending_false_is_active():
    data = UserData(id="u1", app_metadata=AppMetadata(wt_pending_invite=False))
    info = new_regular_user("u1").to_user_info(data, Settings())
    assert info.status == UserStatus.ACTIVE.value


def test_to_user_info_wrong_user_data():
    with pytest.raises(ValueError, match="wrong UserData provided for user u1"):
        new_regular_user("u1").to_user_info(UserData(id="u2"), Settings())


def test_copy_is_equal_and_independent():
    user = new_admin_user("u1")
    user.auto_groups.append("g1")
    user.pats["p1"] = {"name": "ci"}
    clone = user.copy()
    assert clone == user
    clone.auto_groups.append("g2")
    clone.pats["p1"]["name"] = "changed"
    assert user.auto_groups == ["g1"]
    assert user.pats["p1"] == {"name": "ci"}