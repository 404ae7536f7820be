# src/enhancer_auth/domain/value_objects.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Tuple

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


# --- Token / URL checks ----------------------------------------------------


def is_valid_jwt_format(token: str) -> bool:
    """
    Cheap structural check: three non-empty dot-separated segments.

    Says nothing about the segments' content; signature verification does that.
    """
    parts = token.split(".")
    return len(parts) == 3 and all(parts)


def is_valid_uuid(value: str) -> bool:
    """True for a UUID v4 string (any case)."""
    return bool(_UUID_RE.match(value))


def sanitize_url(url: str) -> str:
    """Strip trailing slashes."""
    return url.rstrip("/")


# --- Access / scope value objects ----------------------------------------


def _normalize(values: Iterable[str]) -> Tuple[str, ...]:
    """
    Normalize an iterable of strings into a tuple.
    If a plain string is passed, treat it as a single-element collection.
    """
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True, slots=True)
class ScopeRequirement:
    """
    Declarative description of a scope requirement.

    - any_of:   at least one of these scopes must be granted (OR)
    - all_of:   all of these scopes must be granted (AND)

    You can use both any_of and all_of together if needed.
    """

    any_of: Tuple[str, ...] = ()
    all_of: Tuple[str, ...] = ()

    def __init__(
            self,
            any_of: Iterable[str] | None = None,
            all_of: Iterable[str] | None = None,
    ) -> None:
        object.__setattr__(self, "any_of", _normalize(any_of or ()))
        object.__setattr__(self, "all_of", _normalize(all_of or ()))

    @property
    def scopes(self) -> Tuple[str, ...]:
        return self.all_of + self.any_of

    def is_satisfied_by(self, granted: Iterable[str]) -> bool:
        granted_set = set(granted)
        if self.any_of and not any(s in granted_set for s in self.any_of):
            return False
        return all(s in granted_set for s in self.all_of)


def require_scopes(*scopes: str, any_of: bool = False) -> ScopeRequirement:
    if any_of:
        return ScopeRequirement(any_of=scopes)
    return ScopeRequirement(all_of=scopes)
