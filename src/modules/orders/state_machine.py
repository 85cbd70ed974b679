"""Order status transition validator."""

from __future__ import annotations

from modules.orders.constants import TERMINAL_STATES, VALID_TRANSITIONS


def is_legal(current: str, new: str) -> bool:
    """Return ``True`` if an order in ``current`` may move to ``new``.

    Unknown states on either side are illegal.  Re-entering the current
    state is not a transition and is rejected too.
    """
    return new in VALID_TRANSITIONS.get(current, frozenset())


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES
