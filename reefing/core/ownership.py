"""
Resource ownership policy.

Every path-addressed resource is authorized the same way: load it, 404 if it
is absent, compare its owner with the caller, 403 on mismatch. Children are
only looked up after their parent passed that check, so a caller who does not
own the parent can never learn whether a child id exists.
"""

from typing import Callable, Optional, TypeVar

from reefing.core.errors import ForbiddenError, NotFoundError

T = TypeVar("T")


def authorize_owner(
    loader: Callable[[str], Optional[T]],
    resource_id: str,
    owner_of: Callable[[T], str],
    caller_id: str,
    label: str,
) -> T:
    resource = loader(resource_id)
    if resource is None:
        raise NotFoundError(f"{label} not found")
    if owner_of(resource) != caller_id:
        raise ForbiddenError()
    return resource


def load_child(
    loader: Callable[[str], Optional[T]],
    child_id: str,
    parent_id: str,
    parent_of: Callable[[T], str],
    label: str,
) -> T:
    child = loader(child_id)
    if child is None or parent_of(child) != parent_id:
        raise NotFoundError(f"{label} not found")
    return child
