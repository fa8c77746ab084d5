"""
Group registry

A group is a classroom namespace for teams, PINs and assessments. Groups are
either created explicitly or implied by the records that reference them;
list_all() unions both on every call rather than storing the union.
"""
import logging
import re
from typing import Any, List, Optional

from assessment_server.core.store import DataStore
from assessment_server.errors import (
    ConflictError, DuplicateError, NotFoundError, ValidationError,
)
from assessment_server.utils import clean_str


logger = logging.getLogger(__name__)

DEFAULT_GROUP = "default"

GROUP_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_group(value: Any) -> str:
    """
    Normalize a group reference

    Example:
        >>> normalize_group("  cohort-a ")
        'cohort-a'
        >>> normalize_group(None)
        'default'
    """
    text = "" if value is None else str(value).strip()
    return text or DEFAULT_GROUP


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


class GroupRegistry:
    def __init__(self, store: DataStore):
        self.store = store

    def exists(self, name: str) -> bool:
        return name in self.store.groups

    def list_all(self) -> List[str]:
        """Registered groups plus every group referenced by a team or assessment"""
        names = set(self.store.groups)
        names.update(normalize_group(t.group) for t in self.store.teams)
        names.update(normalize_group(a.group) for a in self.store.assessments)
        return sorted(names)

    def create(self, name: Any) -> str:
        group_name = "" if name is None else str(name).strip()
        if not group_name:
            raise ValidationError("Group name is required")

        if not GROUP_NAME_PATTERN.match(group_name):
            raise ValidationError(
                "Group name can only contain letters, numbers, hyphens, and underscores"
            )

        if self.exists(group_name):
            raise DuplicateError("Group already exists")

        self.store.groups.append(group_name)
        self.store.save()
        logger.info(f"Created new group: {group_name}")
        return group_name

    def delete(self, name: str) -> None:
        group_name = clean_str(name)
        if not group_name:
            raise ValidationError("Group name is required")

        if not self.exists(group_name):
            raise NotFoundError("Group not found")

        target = normalize_group(group_name)
        if any(normalize_group(t.group) == target for t in self.store.teams):
            raise ConflictError("Cannot delete group with existing teams. Remove teams first.")
        if any(normalize_group(a.group) == target for a in self.store.assessments):
            raise ConflictError(
                "Cannot delete group with existing assessments. Remove assessments first."
            )

        self.store.groups = [g for g in self.store.groups if g != group_name]
        self.store.save()
        logger.info(f"Deleted group: {group_name}")

    def set_email(self, name: str, email: Optional[str]) -> Optional[str]:
        """
        Set or clear the notification address for a group

        Returns:
            The stored address, or None when the mapping was cleared
        """
        group_name = clean_str(name)
        if not group_name:
            raise ValidationError("Group name is required")
        if not self.exists(group_name):
            raise NotFoundError("Group not found")

        address = clean_str(email)
        if address:
            if not is_valid_email(address):
                raise ValidationError("Invalid email format")
            self.store.group_emails[group_name] = address
        else:
            self.store.group_emails.pop(group_name, None)

        self.store.save()
        logger.info(f"Updated email for group {group_name}: {address or 'removed'}")
        return address or None

    def get_email(self, name: str) -> Optional[str]:
        group_name = clean_str(name)
        if not self.exists(group_name):
            raise NotFoundError("Group not found")
        return self.store.group_emails.get(group_name)

    def recipient_for(self, group: str) -> Optional[str]:
        """Notification address for a group; None is a normal outcome"""
        return self.store.group_emails.get(normalize_group(group))
