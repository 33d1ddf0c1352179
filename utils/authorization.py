"""Static allow-list check for message senders."""

from enum import Enum
from typing import Optional, Sequence


class UserStatus(str, Enum):
    ALLOWED = "allowed"
    NOT_ALLOWED = "not_allowed"
    NO_USERNAME = "no_username"
    NO_USERS = "no_users"


def check_user(username: Optional[str], allowed_users: Sequence[str]) -> UserStatus:
    """Classify a sender against the configured allow-list.

    Args:
        username: Sender's public username, if the transport exposes one.
        allowed_users: Usernames permitted to publish.

    Returns:
        NO_USERS when the allow-list is empty (nobody may publish),
        NO_USERNAME when the sender has no username, NOT_ALLOWED when the
        username is not listed, otherwise ALLOWED.
    """
    if not allowed_users:
        return UserStatus.NO_USERS
    if not username:
        return UserStatus.NO_USERNAME
    if username not in allowed_users:
        return UserStatus.NOT_ALLOWED
    return UserStatus.ALLOWED
