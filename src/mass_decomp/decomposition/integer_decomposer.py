"""
Exact decomposition of integer masses over integer weights.

IntegerMassDecomposer follows "Efficient Mass Decomposition", S. Böcker, Zs. Lipták,
ACM SAC-BIO 2004: instead of a dynamic programming table over all masses it keeps,
per residue class of the smallest weight, the smallest decomposable number
(see residue_table.py), and uses it to prune the backtracking so that every
branch that is followed ends in at least one decomposition.

ClassicalDPMassDecomposer is the textbook dynamic programming version. It is very
inefficient for large masses but serves as a baseline to compare against.
"""
import logging
from typing import Dict, List, Optional, Tuple

from ..weights import Weights, ascending_order, validate_non_negative
from .residue_table import ExtendedResidueTable, INFINITY

logger = logging.getLogger(__name__)

Composition = Tuple[int, ...]

_MAX_MEMO_ENTRIES = 500_000


class _SortedWeightsMixin:
    """
    Both decomposers work on the positive weights sorted in ascending order, and map
    their results back to the caller's index order. Zero weights always get multiplicity 0.
    """

    def _init_sorted_weights(self, weights: Weights) -> None:
        validate_non_negative(weights)
        self.weights = weights.copy()  # own snapshot, later changes to `weights` don't leak in
        self.alphabet_size = weights.size()
        self._order = ascending_order(weights, exclude_zero=True)
        self._sorted_weights = tuple(weights.get_weight(i) for i in self._order)
        if len(self._order) < self.alphabet_size:
            logger.debug("%d zero weights are excluded from decomposition", self.alphabet_size - len(self._order))

    def _to_composition(self, sorted_counts) -> Composition:
        composition = [0] * self.alphabet_size
        for position, count in enumerate(sorted_counts):
            composition[self._order[position]] = count
        return tuple(composition)

    def _empty_alphabet_result(self, mass: int) -> List[Composition]:
        return [self._to_composition(())] if mass == 0 else []


class IntegerMassDecomposer(_SortedWeightsMixin):
    """
    Decomposes integer masses over the integer weights of a Weights snapshot.

    Example usage:

        weights = Weights([0.6, 0.7, 1.1, 1.5], precision=0.1)   # 6, 7, 11, 15
        decomposer = IntegerMassDecomposer(weights)
        decomposer.exist(16)                          # False
        decomposer.get_all_decompositions(44)         # 6 compositions, e.g. (0, 2, 0, 2)
    """

    def __init__(self, weights: Weights, memo_depth: int = 1):
        """
        Args:
            weights: Weights over which the masses are decomposed. A copy is kept.
            memo_depth: sub-decompositions over the weights at sorted positions 0..memo_depth
                are cached per (position, remaining mass), and reused across queries.
        """
        if memo_depth < 0:
            raise ValueError(f"memo_depth should be non-negative, but got {memo_depth}")
        self._init_sorted_weights(weights)
        self.residue_table: Optional[ExtendedResidueTable] = None
        if self._sorted_weights:
            self.residue_table = ExtendedResidueTable(self._sorted_weights)
        self.memo_depth = min(memo_depth, max(len(self._sorted_weights) - 1, 0))
        self._memo: Dict[Tuple[int, int], Tuple[Tuple[int, ...], ...]] = {}

    def clear_cache(self) -> None:
        self._memo = {}

    def exist(self, mass: int) -> bool:
        if self.residue_table is None:
            return mass == 0
        return self.residue_table.is_decomposable(mass)

    def get_decomposition(self, mass: int) -> Optional[Composition]:
        """Returns one decomposition of mass, or None if there is none."""
        if not self.exist(mass):
            return None
        if self.residue_table is None:
            return self._to_composition(())
        smallest = self._sorted_weights[0]
        table = self.residue_table.table
        counts = [0] * len(self._sorted_weights)
        for i in range(len(self._sorted_weights) - 1, 0, -1):
            current = self._sorted_weights[i]
            previous_row = table[i - 1]
            count = 0
            # mass is decomposable over 0..i, so some count leaves a mass decomposable over 0..i-1
            while mass < previous_row[mass % smallest]:
                mass -= current
                count += 1
            counts[i] = count
        counts[0] = mass // smallest
        return self._to_composition(counts)

    def get_all_decompositions(self, mass: int) -> List[Composition]:
        if self.residue_table is None:
            return self._empty_alphabet_result(mass)
        return [self._to_composition(counts) for counts in self._enumerate(mass)]

    def get_number_of_decompositions(self, mass: int) -> int:
        if self.residue_table is None:
            return 1 if mass == 0 else 0
        number = 0
        for level, remaining, _ in self._walk(mass, keep_counts=False):
            number += len(self._tail(level, remaining))
        return number

    def _enumerate(self, mass: int) -> List[Tuple[int, ...]]:
        decompositions = []
        for level, remaining, suffix in self._walk(mass, keep_counts=True):
            for tail in self._tail(level, remaining):
                decompositions.append(tail + suffix)
        return decompositions

    def _walk(self, mass: int, keep_counts: bool):
        """
        Depth first search over sorted positions, from the largest weight down, with an explicit stack.
        Yields (level, remaining mass, counts of positions above level) whenever the search reaches
        the memoized levels. Every yielded remaining mass is decomposable over positions 0..level.
        """
        if mass < 0 or not self.residue_table.is_decomposable(mass):
            return
        weights = self._sorted_weights
        smallest = weights[0]
        table = self.residue_table.table
        lcms = self.residue_table.lcms
        mass_in_lcms = self.residue_table.mass_in_lcms

        stack = [(len(weights) - 1, mass, ())]
        while stack:
            level, remaining, suffix = stack.pop()
            if level <= self.memo_depth:
                yield level, remaining, suffix
                continue
            current = weights[level]
            lcm = lcms[level]
            step = mass_in_lcms[level]
            previous_row = table[level - 1]
            for i in range(step):
                rest = remaining - i * current
                if rest < 0:
                    break
                # lower bound of the residue class, stepping by the lcm keeps the class
                bound = previous_row[rest % smallest]
                if bound == INFINITY:
                    continue
                count = i
                while rest >= bound:
                    stack.append((level - 1, rest, (count,) + suffix if keep_counts else ()))
                    rest -= lcm
                    count += step

    def _tail(self, level: int, mass: int) -> Tuple[Tuple[int, ...], ...]:
        """All decompositions of mass over sorted positions 0..level, memoized per (level, mass)."""
        key = (level, mass)
        cached = self._memo.get(key)
        if cached is not None:
            return cached
        weights = self._sorted_weights
        smallest = weights[0]
        if level == 0:
            result = ((mass // smallest,),) if mass >= 0 and mass % smallest == 0 else ()
        else:
            current = weights[level]
            previous_row = self.residue_table.table[level - 1]
            parts = []
            count = 0
            rest = mass
            while rest >= 0:
                if rest >= previous_row[rest % smallest]:
                    for tail in self._tail(level - 1, rest):
                        parts.append(tail + (count,))
                rest -= current
                count += 1
            result = tuple(parts)
        if len(self._memo) >= _MAX_MEMO_ENTRIES:
            logger.debug("decomposition memo is full, clearing it")
            self._memo = {}
        self._memo[key] = result
        return result

    def __getstate__(self):
        state = self.__dict__.copy()
        state['_memo'] = {}  # workers build their own memo
        return state


class ClassicalDPMassDecomposer(_SortedWeightsMixin):
    """
    Classical dynamic programming mass decomposer.

    Table construction is O(k*M) for alphabet size k and mass M, the tables are grown on
    demand and kept as a cache. All decompositions are collected by backtracking over the
    counting table.
    """

    def __init__(self, weights: Weights):
        self._init_sorted_weights(weights)
        self._existence_table: List[bool] = [True]
        # number_table[i][m]: number of decompositions of m over sorted positions 0..i
        self._number_table: List[List[int]] = [[1] for _ in self._sorted_weights]

    def exist(self, mass: int) -> bool:
        if mass < 0:
            return False
        if not self._sorted_weights:
            return mass == 0
        self._fill_existence_table(mass)
        return self._existence_table[mass]

    def get_number_of_decompositions(self, mass: int) -> int:
        if mass < 0:
            return 0
        if not self._sorted_weights:
            return 1 if mass == 0 else 0
        self._fill_number_table(mass)
        return self._number_table[-1][mass]

    def get_decomposition(self, mass: int) -> Optional[Composition]:
        if self.get_number_of_decompositions(mass) == 0:
            return None
        if not self._sorted_weights:
            return self._to_composition(())
        counts = [0] * len(self._sorted_weights)
        for i in range(len(self._sorted_weights) - 1, 0, -1):
            while self._number_table[i - 1][mass] == 0:
                mass -= self._sorted_weights[i]
                counts[i] += 1
        counts[0] = mass // self._sorted_weights[0]
        return self._to_composition(counts)

    def get_all_decompositions(self, mass: int) -> List[Composition]:
        if self.get_number_of_decompositions(mass) == 0:
            return []
        if not self._sorted_weights:
            return self._empty_alphabet_result(mass)
        decompositions = []
        counts = [0] * len(self._sorted_weights)
        self._collect_recursively(mass, len(self._sorted_weights) - 1, counts, decompositions)
        return decompositions

    def _collect_recursively(self, mass: int, index: int, counts: List[int], decompositions: List[Composition]) -> None:
        if index == 0:
            counts[0] = mass // self._sorted_weights[0]
            decompositions.append(self._to_composition(counts))
            return
        current = self._sorted_weights[index]
        previous_row = self._number_table[index - 1]
        count = 0
        while mass >= 0:
            if previous_row[mass]:
                counts[index] = count
                self._collect_recursively(mass, index - 1, counts, decompositions)
            mass -= current
            count += 1
        counts[index] = 0

    def _fill_existence_table(self, value: int) -> None:
        table = self._existence_table
        # cache hit: nothing to be done
        for element in range(len(table), value + 1):
            exists = False
            for weight in self._sorted_weights:
                if weight > element:
                    break
                if table[element - weight]:
                    exists = True
                    break
            table.append(exists)

    def _fill_number_table(self, value: int) -> None:
        first_column = len(self._number_table[0])
        if first_column > value:
            return
        smallest = self._sorted_weights[0]
        first_row = self._number_table[0]
        for m in range(first_column, value + 1):
            first_row.append(1 if m % smallest == 0 else 0)
        for i in range(1, len(self._sorted_weights)):
            current = self._sorted_weights[i]
            row = self._number_table[i]
            previous_row = self._number_table[i - 1]
            for m in range(first_column, value + 1):
                row.append(previous_row[m] + (row[m - current] if m >= current else 0))
