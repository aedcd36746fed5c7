"""
Unique label generation.

Labels combine a human-readable prefix with a suffix derived from a
counter seeded from wall-clock time, e.g. ``"Plan lq3k9f2a5"``. Each
engine owns its own ``NameSequence``. Unseeded sequences also take a
process-wide instance slot that is mixed into every suffix, so two
sequences created in the same millisecond still never collide.
"""

from __future__ import annotations

import itertools
import threading
import time

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
INSTANCE_SLOTS = 36**3

_instance_slots = itertools.count()


def to_base36(value: int) -> str:
    """Render a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    chars = []
    while value:
        value, remainder = divmod(value, 36)
        chars.append(_DIGITS[remainder])
    return "".join(reversed(chars))


class NameSequence:
    """
    Monotonic, process-local label generator.

    Outputs are strictly distinct for the lifetime of one instance, and
    distinct between unseeded instances of the same process (up to
    ``INSTANCE_SLOTS`` of them). There is no cross-process guarantee;
    pass a ``namespace`` (for example the pytest-xdist worker id) when
    several processes share one application account.

    A ``seed`` makes the sequence predictable: suffixes are then simply
    ``seed + 1``, ``seed + 2``, ... in base 36.
    """

    def __init__(self, separator: str = " ", namespace: str = "", seed: int | None = None):
        self.separator = separator
        self.namespace = namespace
        if seed is None:
            self._counter = time.time_ns() // 1_000_000
            self._stride = INSTANCE_SLOTS
            self.slot = next(_instance_slots) % INSTANCE_SLOTS
        else:
            self._counter = seed
            self._stride = 1
            self.slot = 0
        self._lock = threading.Lock()

    def next_suffix(self) -> str:
        with self._lock:
            self._counter += 1
            value = self._counter * self._stride + self.slot
        return f"{self.namespace}{to_base36(value)}"

    def next(self, prefix: str) -> str:
        """
        Build a fresh label for ``prefix``.

        Args:
            prefix: Human-readable part of the label.

        Returns:
            ``prefix + separator + suffix``.
        """
        prefix = prefix.strip()
        if not prefix:
            raise ValueError("prefix must be a non-empty string")
        return f"{prefix}{self.separator}{self.next_suffix()}"

    def prefix_of(self, label: str) -> str:
        """Strip a generated suffix, returning the original prefix."""
        head, sep, _ = label.rpartition(self.separator)
        return head if sep else label
