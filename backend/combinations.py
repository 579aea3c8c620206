"""
Index-combination stepping used to enumerate alternative projections.

A selection is a sorted tuple of indices into the ordered course list. Stepping
moves to the next tuple of the same size in lexicographic order: the rightmost
position that can still advance is incremented and everything to its right is
reset to consecutive values.
"""


def next_combination(indices: list[int], n: int) -> list[int] | None:
    """
    Next same-size combination over range(n), or None when exhausted.

    >>> next_combination([0, 1], 4)
    [0, 2]
    >>> next_combination([0, 3], 4)
    [1, 2]
    >>> next_combination([2, 3], 4) is None
    True
    """
    k = len(indices)
    nxt = list(indices)
    i = k - 1
    while i >= 0 and nxt[i] == i + (n - k):
        i -= 1
    if i < 0:
        return None
    nxt[i] += 1
    for j in range(i + 1, k):
        nxt[j] = nxt[j - 1] + 1
    return nxt


def combination_credits(indices: list[int], credits: list[int]) -> int:
    return sum(credits[i] for i in indices)


def next_feasible_combination(
    indices: list[int],
    credits: list[int],
    cap: int,
) -> list[int] | None:
    """Step until a combination fits within cap. None when none is left."""
    nxt = next_combination(indices, len(credits))
    while nxt is not None and combination_credits(nxt, credits) > cap:
        nxt = next_combination(nxt, len(credits))
    return nxt


def extend_forward(indices: list[int], credits: list[int], cap: int) -> tuple[list[int], int]:
    """
    Append the courses right after the last index while they fit, stopping at
    the first one that would overflow cap. Returns (indices, total).
    """
    extended = list(indices)
    total = combination_credits(extended, credits)
    start = extended[-1] + 1 if extended else 0
    for j in range(start, len(credits)):
        if total + credits[j] > cap:
            break
        extended.append(j)
        total += credits[j]
    return extended, total
