"""Sequence allocation from a published pool of task orderings.

A study publishes a pool of sequences (for example the rows of a Latin
square). Each new participant receives one row. The ``least_assigned``
policy balances participants across rows using per-row assignment counts
kept in the study record; ``first`` always hands out the first row.
"""

from __future__ import annotations

from collections.abc import Sequence as SequenceABC
from typing import Literal

from quire.data.models import Sequence, SequenceAllocation
from quire.errors import EmptyPoolError

AllocationPolicy = Literal["least_assigned", "first"]


def normalize_counts(counts: SequenceABC[int] | None, pool_size: int) -> list[int]:
    """Align stored assignment counts with the current pool size.

    Counts beyond the pool are dropped and missing slots start at zero.

    Parameters
    ----------
    counts : Sequence[int] | None
        Stored per-slot counts.
    pool_size : int
        Number of rows in the pool.

    Returns
    -------
    list[int]
        Counts with exactly ``pool_size`` entries.

    Examples
    --------
    >>> normalize_counts([3], 3)
    [3, 0, 0]
    >>> normalize_counts([1, 2, 3], 2)
    [1, 2]
    """
    counts = list(counts or [])[:pool_size]
    return counts + [0] * (pool_size - len(counts))


class SequenceAllocator:
    """Choose a pool row for a newly joining participant.

    Parameters
    ----------
    policy : {"least_assigned", "first"}
        Selection policy.

    Examples
    --------
    >>> allocator = SequenceAllocator()
    >>> allocator.allocate([["t1", "t2"], ["t3", "t4"]], counts=[1, 0])
    SequenceAllocation(sequence=['t3', 't4'], index=2)
    >>> SequenceAllocator("first").allocate([["t1"], ["t2"]], counts=[5, 0]).index
    1
    """

    def __init__(self, policy: AllocationPolicy = "least_assigned") -> None:
        if policy not in ("least_assigned", "first"):
            raise ValueError(f"Unknown allocation policy: {policy}")
        self.policy = policy

    def select_slot(
        self, pool: SequenceABC[Sequence], counts: SequenceABC[int] | None = None
    ) -> int:
        """Return the 0-based pool position to assign.

        Parameters
        ----------
        pool : Sequence[Sequence]
            Published sequences.
        counts : Sequence[int] | None
            Per-slot assignment counts.

        Returns
        -------
        int
            Selected position.

        Raises
        ------
        EmptyPoolError
            If the pool has no rows.
        """
        if not pool:
            raise EmptyPoolError("Sequence array not found")
        if self.policy == "first":
            return 0
        aligned = normalize_counts(counts, len(pool))
        # min() returns the first minimum, so ties go to the lowest position
        return min(range(len(pool)), key=lambda slot: aligned[slot])

    def allocate(
        self,
        pool: SequenceABC[Sequence] | None,
        counts: SequenceABC[int] | None = None,
    ) -> SequenceAllocation:
        """Assign a sequence from the pool.

        Parameters
        ----------
        pool : Sequence[Sequence] | None
            Published sequences; None when no pool was published.
        counts : Sequence[int] | None
            Per-slot assignment counts.

        Returns
        -------
        SequenceAllocation
            Chosen sequence and its 1-based pool position.

        Raises
        ------
        EmptyPoolError
            If the pool is missing or empty.
        """
        if pool is None:
            raise EmptyPoolError("Sequence array not found")
        slot = self.select_slot(pool, counts)
        return SequenceAllocation(sequence=list(pool[slot]), index=slot + 1)
