"""Validation helpers for codec and format allow-lists."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T")


def check_allow_list(
    values: Sequence[T],
    noun: str,
    *,
    first_ok: Callable[[T], bool] | None = None,
    first_requirement: str = "",
) -> tuple[T, ...]:
    """Return ``values`` as a tuple after checking it is a usable allow-list.

    Args:
        values: Entries in preference order.
        noun: Plural label used in messages, e.g. ``"Codecs"``.
        first_ok: Predicate the first entry must satisfy, if any.
        first_requirement: Message used when ``first_ok`` fails.

    Raises:
        ValueError: If the list is empty, has duplicates, or its first entry
            fails ``first_ok``.

    """
    result = tuple(values)
    if not result:
        raise ValueError(f"{noun} cannot be empty.")
    if len(set(result)) != len(result):
        raise ValueError(f"{noun} cannot contain duplicates.")
    if first_ok is not None and not first_ok(result[0]):
        raise ValueError(first_requirement)
    return result


def check_min_max(low: float | None, high: float | None, name: str) -> None:
    """Raise ``ValueError`` when ``low`` exceeds ``high``."""
    if low is not None and high is not None and low > high:
        raise ValueError(f"Min{name} cannot be greater than Max{name}.")


__all__ = ["check_allow_list", "check_min_max"]
