"""User and group account management."""

from .manager import AccountManager, UserInfo, group_exists, split_groups, user_exists

__all__ = ["AccountManager", "UserInfo", "user_exists", "group_exists", "split_groups"]
