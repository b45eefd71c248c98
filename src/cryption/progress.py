# -*- coding: utf-8 -*-
"""
RU: Сквозная стадия конвейера, сообщающая накопленное число байтов.
EN: Pass-through pipeline stage that reports cumulative byte counts.
"""
from __future__ import annotations

from typing import Callable, Iterable, Iterator, Optional

ProgressCallback = Callable[[int], None]


class ProgressCounter:
    """
    Forward chunks unchanged and report the running total after each one.

    The callback receives the cumulative number of bytes seen so far, never
    the size of a single chunk. Without a callback the stage only counts.

    Examples:
        >>> seen = []
        >>> list(ProgressCounter(seen.append).pipe([b"ab", b"cde"]))
        [b'ab', b'cde']
        >>> seen
        [2, 5]
    """

    __slots__ = ("_callback", "total")

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self._callback = callback
        self.total = 0

    def pipe(self, chunks: Iterable[bytes]) -> Iterator[bytes]:
        for chunk in chunks:
            if chunk:
                self.total += len(chunk)
                if self._callback is not None:
                    self._callback(self.total)
            yield chunk


__all__ = ["ProgressCallback", "ProgressCounter"]
