"""
Extended residue table for the money-changing problem.

Based on "A fast and simple algorithm for the money changing problem",
S. Böcker, Zs. Lipták, Algorithmica 2007 (the round robin algorithm).

For positive integer weights a[0], ..., a[k-1], table[i][r] is the smallest
non-negative integer n with n % a[0] == r that can be written as a non-negative
integer combination of a[0..i], or INFINITY if there is none. A mass m is
decomposable over a[0..i] iff m >= table[i][m % a[0]].

Any positive a[0] gives a correct table; putting the smallest weight first keeps it small.
"""
import logging
import math
from typing import List, Sequence, Tuple

logger = logging.getLogger(__name__)

INFINITY = math.inf


class ExtendedResidueTable:
    """
    Built once per weight snapshot and never modified afterwards, so one instance
    can be read from several threads, or pickled into worker processes.
    """

    __slots__ = ['weights', 'table', 'lcms', 'mass_in_lcms']

    def __init__(self, weights: Sequence[int]):
        weights = tuple(int(w) for w in weights)
        if len(weights) == 0:
            raise ValueError("the residue table needs at least one weight.")
        if min(weights) <= 0:
            raise ValueError(f"the residue table needs positive weights, but got {list(weights)}")
        self.weights: Tuple[int, ...] = weights
        self.table: Tuple[Tuple[float, ...], ...] = ()
        # lcms[i] = lcm(a[0], a[i]); mass_in_lcms[i] = how many a[i] make up that lcm
        self.lcms: Tuple[int, ...] = ()
        self.mass_in_lcms: Tuple[int, ...] = ()
        self._fill()

    def _fill(self) -> None:
        weights = self.weights
        smallest = weights[0]

        first_row = [INFINITY] * smallest
        first_row[0] = 0
        rows: List[Tuple[float, ...]] = [tuple(first_row)]
        lcms = [smallest]
        mass_in_lcms = [1]

        for i in range(1, len(weights)):
            current = weights[i]
            d = math.gcd(smallest, current)
            lcms.append(current * smallest // d)
            mass_in_lcms.append(smallest // d)

            previous_row = rows[-1]
            # Nijenhuis: if a[i] is already decomposable over a[0..i-1], nothing changes
            if current >= previous_row[current % smallest]:
                rows.append(previous_row)
                continue

            row = list(previous_row)
            cycle_length = smallest // d
            for p in range(d):
                # start each residue cycle from its smallest entry
                n = min(row[q] for q in range(p, smallest, d))
                if n == INFINITY:
                    continue
                for _ in range(cycle_length - 1):
                    n += current
                    r = n % smallest
                    if row[r] < n:
                        n = row[r]
                    row[r] = n
            rows.append(tuple(row))

        self.table = tuple(rows)
        self.lcms = tuple(lcms)
        self.mass_in_lcms = tuple(mass_in_lcms)
        logger.debug("built residue table for %d weights, %d residue classes", len(weights), smallest)

    def __len__(self) -> int:
        return len(self.weights)

    @property
    def smallest_weight(self) -> int:
        return self.weights[0]

    def lower_bound(self, mass: int, index: int) -> float:
        """Smallest decomposable value over a[0..index] in the residue class of mass."""
        return self.table[index][mass % self.weights[0]]

    def is_decomposable(self, mass: int, index: int = -1) -> bool:
        if mass < 0:
            return False
        return mass >= self.table[index][mass % self.weights[0]]

    def frobenius_number(self) -> float:
        """Largest mass that is not decomposable over all weights, INFINITY if the weights have a common divisor > 1."""
        largest = max(self.table[-1])
        if largest == INFINITY:
            return INFINITY
        return largest - self.weights[0]
