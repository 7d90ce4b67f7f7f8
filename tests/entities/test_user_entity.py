from datetime import datetime, timedelta, timezone

import pytest

from domain.common.exceptions import DomainValidationException
from domain.user.entity import DEFAULT_AVATAR_URL, User, UserStatus
from domain.user.service import PasswordService


def make_user(**kwargs) -> User:
    data = dict(id=1, username="alice_01", hashed_password="x")
    data.update(kwargs)
    return User(**data)


@pytest.mark.parametrize("username", ["abc", "a" * 21, "bad name", "名字名字名字"])
def test_invalid_usernames_rejected(username):
    with pytest.raises(DomainValidationException):
        User.validate_username(username)


def test_ban_records_absolute_expiry():
    user = make_user()
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    user.ban("spam", 2, now=now)

    assert user.status == UserStatus.BANNED
    assert user.ban_reason == "spam"
    assert user.ban_expire_at == now + timedelta(hours=2)


@pytest.mark.parametrize("reason,hours", [("", 1), ("  ", 1), ("spam", 0), ("spam", -3)])
def test_ban_requires_reason_and_positive_duration(reason, hours):
    with pytest.raises(DomainValidationException):
        make_user().ban(reason, hours)


def test_expired_ban_is_lifted_on_refresh():
    user = make_user()
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    user.ban("spam", 1, now=now)

    assert user.refresh_ban_status(now + timedelta(minutes=59)) is False
    assert user.is_banned
    assert user.refresh_ban_status(now + timedelta(hours=1)) is True
    assert not user.is_banned
    assert user.ban_reason is None and user.ban_expire_at is None


def test_refresh_treats_naive_expiry_as_utc():
    user = make_user(status=UserStatus.BANNED, ban_reason="spam", ban_expire_at=datetime(2026, 1, 1))
    assert user.refresh_ban_status(datetime(2026, 1, 1, 0, 1, tzinfo=timezone.utc)) is True


def test_default_avatar_is_not_custom():
    assert not make_user().has_custom_avatar
    assert make_user(avatar_url=DEFAULT_AVATAR_URL).has_custom_avatar is False
    assert make_user(avatar_url="/uploads/avatars/abc.png").has_custom_avatar


def test_password_hash_roundtrip_and_strength():
    hashed = PasswordService.hash_password("secret123")
    assert PasswordService.verify_password("secret123", hashed)
    assert not PasswordService.verify_password("secret124", hashed)
    assert not PasswordService.verify_password("secret123", "garbage")

    for weak in ["short1", "onlyletters", "12345678"]:
        with pytest.raises(DomainValidationException):
            PasswordService.validate_password_strength(weak)
