from __future__ import annotations

from collections.abc import Hashable, Sequence


def longest_common_contiguous_subsequence(
    x: Sequence[Hashable], y: Sequence[Hashable]
) -> tuple[int, int, int]:
    """Return (i, j, length) of the longest run with x[i:i+length] == y[j:j+length].

    Classic O(m*n) dynamic programming over two rolling rows. Ties resolve to
    the first occurrence (smallest i, then smallest j). Returns (0, 0, 0) when
    the sequences share no element.
    """
    best = (0, 0, 0)
    previous = [0] * (len(y) + 1)
    for i in range(1, len(x) + 1):
        current = [0] * (len(y) + 1)
        for j in range(1, len(y) + 1):
            if x[i - 1] == y[j - 1]:
                current[j] = previous[j - 1] + 1
                if current[j] > best[2]:
                    best = (i - current[j], j - current[j], current[j])
        previous = current
    return best
