"""
Edit distance used to spot near-duplicate user questions.
"""

from typing import List


def distance(a: str, b: str) -> int:
    """
    Levenshtein distance between two short strings.

    Counts the single-character insertions, deletions and substitutions
    needed to turn ``a`` into ``b``. Rows of the table follow ``b``,
    columns follow ``a``.
    """
    if a == b:
        return 0

    table: List[List[int]] = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]

    for j in range(len(a) + 1):
        table[0][j] = j
    for i in range(len(b) + 1):
        table[i][0] = i

    for i in range(1, len(b) + 1):
        for j in range(1, len(a) + 1):
            cost = 0 if b[i - 1] == a[j - 1] else 1
            table[i][j] = min(
                table[i - 1][j] + 1,         # insertion
                table[i][j - 1] + 1,         # deletion
                table[i - 1][j - 1] + cost,  # substitution
            )

    return table[len(b)][len(a)]
