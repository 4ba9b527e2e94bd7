"""
Simultaneous decomposition of two masses over two index-aligned weight sets.

A composition c decomposes (mass_a, mass_b) if sum(c[i] * a[i]) == mass_a and
sum(c[i] * b[i]) == mass_b at the same time. The search walks the alphabet positions
once, carrying both remaining masses, and cuts a branch as soon as the remaining mass
is not decomposable under weight set A or under weight set B (one residue table each).
"""
import logging
from typing import List, Optional, Tuple

from ..weights import Weights, ascending_order, validate_non_negative
from .integer_decomposer import Composition
from .real_decomposer import RealMassDecomposer, integer_mass_range
from .residue_table import ExtendedResidueTable, INFINITY
from .utils import get_min_max_weights_rounding_errors, get_parent_mass

logger = logging.getLogger(__name__)


class TwoMassDecomposer:
    """
    Example usage:

        weights_a = Weights([197, 218, 323, 460], precision=1)
        weights_b = Weights([192, 240, 310, 459], precision=1)
        decomposer = TwoMassDecomposer(weights_a, weights_b)
        decomposer.get_all_decompositions(10000, 10050)
        decomposer.get_decompositions(10000.0, 0.5, 10050.0, 0.5)
    """

    def __init__(self, weights_a: Weights, weights_b: Weights):
        if weights_a.size() != weights_b.size():
            raise ValueError(
                f"weights_a and weights_b must be of equal size, but got {weights_a.size()} and {weights_b.size()}"
            )
        validate_non_negative(weights_a, strict=True)
        validate_non_negative(weights_b, strict=True)
        self.weights_a = weights_a.copy()
        self.weights_b = weights_b.copy()
        self.alphabet_size = weights_a.size()

        # positions sorted by weight set A; B follows the same permutation to stay aligned
        self._order = ascending_order(self.weights_a)
        self._weights_a = tuple(self.weights_a.get_weight(i) for i in self._order)
        self._weights_b = tuple(self.weights_b.get_weight(i) for i in self._order)
        self.residue_table_a: Optional[ExtendedResidueTable] = None
        self.residue_table_b: Optional[ExtendedResidueTable] = None
        if self.alphabet_size > 0:
            self.residue_table_a = ExtendedResidueTable(self._weights_a)
            self.residue_table_b = ExtendedResidueTable(self._weights_b)

        self.rounding_errors_a = get_min_max_weights_rounding_errors(self.weights_a)
        self.rounding_errors_b = get_min_max_weights_rounding_errors(self.weights_b)
        self._single_decomposers: Optional[Tuple[RealMassDecomposer, RealMassDecomposer]] = None

    def get_all_decompositions(self, mass_a: int, mass_b: int) -> List[Composition]:
        """All compositions whose integer mass is exactly mass_a over weights A and mass_b over weights B."""
        if self.alphabet_size == 0:
            return [()] if mass_a == 0 and mass_b == 0 else []
        return [self._to_composition(counts) for counts in self._enumerate(mass_a, mass_b)]

    def get_decompositions(self, mass_a: float, error_a: float, mass_b: float, error_b: float) -> List[Composition]:
        """
        All compositions whose real mass is within error_a of mass_a over alphabet A and
        within error_b of mass_b over alphabet B.
        """
        decompositions = []
        for integer_mass_a, integer_mass_b in self._feasible_integer_pairs(mass_a, error_a, mass_b, error_b):
            for composition in self.get_all_decompositions(integer_mass_a, integer_mass_b):
                if (
                    abs(get_parent_mass(self.weights_a, composition) - mass_a) <= error_a
                    and abs(get_parent_mass(self.weights_b, composition) - mass_b) <= error_b
                ):
                    decompositions.append(composition)
        return decompositions

    def get_decompositions_by_intersection(
        self, mass_a: float, error_a: float, mass_b: float, error_b: float
    ) -> List[Composition]:
        """
        Same result as get_decompositions, computed as the intersection of two independent
        single mass decompositions. Only practical for small alphabets and masses.
        """
        decomposer_a, decomposer_b = self._get_single_decomposers()
        decompositions_b = set(decomposer_b.get_decompositions(mass_b, error_b))
        return [c for c in decomposer_a.get_decompositions(mass_a, error_a) if c in decompositions_b]

    def get_all_decompositions_by_intersection(self, mass_a: int, mass_b: int) -> List[Composition]:
        decomposer_a, decomposer_b = self._get_single_decomposers()
        decompositions_b = set(decomposer_b.decomposer.get_all_decompositions(mass_b))
        return [c for c in decomposer_a.decomposer.get_all_decompositions(mass_a) if c in decompositions_b]

    def _get_single_decomposers(self) -> Tuple[RealMassDecomposer, RealMassDecomposer]:
        if self._single_decomposers is None:
            self._single_decomposers = (RealMassDecomposer(self.weights_a), RealMassDecomposer(self.weights_b))
        return self._single_decomposers

    def _feasible_integer_pairs(self, mass_a: float, error_a: float, mass_b: float, error_b: float):
        low_a, high_a = integer_mass_range(mass_a, error_a, self.weights_a.get_precision(), self.rounding_errors_a)
        low_b, high_b = integer_mass_range(mass_b, error_b, self.weights_b.get_precision(), self.rounding_errors_b)
        logger.debug("integer ranges [%d, %d] x [%d, %d]", low_a, high_a, low_b, high_b)
        if self.alphabet_size == 0:
            masses_a = [m for m in range(low_a, high_a + 1) if m == 0]
            masses_b = [m for m in range(low_b, high_b + 1) if m == 0]
        else:
            masses_a = [m for m in range(low_a, high_a + 1) if self.residue_table_a.is_decomposable(m)]
            masses_b = [m for m in range(low_b, high_b + 1) if self.residue_table_b.is_decomposable(m)]
        for integer_mass_a in masses_a:
            for integer_mass_b in masses_b:
                yield integer_mass_a, integer_mass_b

    def _enumerate(self, mass_a: int, mass_b: int) -> List[Tuple[int, ...]]:
        table_a = self.residue_table_a
        table_b = self.residue_table_b
        if not (table_a.is_decomposable(mass_a) and table_b.is_decomposable(mass_b)):
            return []
        weights_a = self._weights_a
        weights_b = self._weights_b
        smallest_a = weights_a[0]
        first_b = weights_b[0]

        decompositions = []
        stack = [(len(weights_a) - 1, mass_a, mass_b, ())]
        while stack:
            level, remaining_a, remaining_b, suffix = stack.pop()
            if level == 0:
                count = remaining_a // smallest_a
                if remaining_a % smallest_a == 0 and count * first_b == remaining_b:
                    decompositions.append((count,) + suffix)
                continue

            current_a = weights_a[level]
            current_b = weights_b[level]
            lcm = table_a.lcms[level]
            step = table_a.mass_in_lcms[level]
            # what one lcm step of set A removes from the mass of set B
            decrement_b = step * current_b
            previous_row_a = table_a.table[level - 1]
            previous_row_b = table_b.table[level - 1]

            for i in range(step):
                rest_a = remaining_a - i * current_a
                rest_b = remaining_b - i * current_b
                if rest_a < 0 or rest_b < 0:
                    break
                bound_a = previous_row_a[rest_a % smallest_a]
                if bound_a == INFINITY:
                    continue
                count = i
                while rest_a >= bound_a and rest_b >= 0:
                    if rest_b >= previous_row_b[rest_b % first_b]:
                        stack.append((level - 1, rest_a, rest_b, (count,) + suffix))
                    rest_a -= lcm
                    rest_b -= decrement_b
                    count += step
        return decompositions

    def _to_composition(self, sorted_counts) -> Composition:
        composition = [0] * self.alphabet_size
        for position, count in enumerate(sorted_counts):
            composition[self._order[position]] = count
        return tuple(composition)
