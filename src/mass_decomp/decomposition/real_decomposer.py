import logging
import math
import joblib
from typing import List, Optional, Sequence, Tuple

from ..config import DecompositionConfig
from ..weights import Weights
from .integer_decomposer import Composition, IntegerMassDecomposer
from .utils import get_min_max_weights_rounding_errors, get_parent_mass

logger = logging.getLogger(__name__)


class RealMassDecomposer:
    """
    Decomposes real masses with an absolute error allowed.

    Wraps an IntegerMassDecomposer: the real interval [mass - error, mass + error] is mapped to a
    range of integer masses (widened by the rounding errors of the weights, so no decomposition is
    lost to rounding), every integer mass in that range is decomposed exactly, and each decomposition
    is kept only if its real mass lies within the error (rounding can also produce false positives).

    Example usage:

        weights = Weights([1.007825, 12.0, 14.003074, 15.994915, 30.973762, 31.972071], precision=1e-5)
        decomposer = RealMassDecomposer(weights)
        decomposer.get_decompositions(180.063388, 1e-4)
    """

    def __init__(self, weights: Weights, memo_depth: int = 1):
        self.weights = weights.copy()
        self.precision = self.weights.get_precision()
        self.rounding_errors: Tuple[float, float] = get_min_max_weights_rounding_errors(self.weights)
        self.decomposer = IntegerMassDecomposer(self.weights, memo_depth=memo_depth)
        self.config: Optional[DecompositionConfig] = None

    @classmethod
    def from_config(cls, weights: Weights, config: DecompositionConfig) -> 'RealMassDecomposer':
        """Decomposer with the memo_depth of config, whose decompose() uses its error and n_jobs."""
        decomposer = cls(weights, memo_depth=config.memo_depth)
        decomposer.config = config
        return decomposer

    def decompose(self, mass: float) -> List[Composition]:
        if self.config is None:
            raise ValueError("decompose() needs a decomposer built with from_config(), use get_decompositions() otherwise.")
        return self.get_decompositions(mass, self.config.error, n_jobs=self.config.n_jobs)

    def get_integer_mass_range(self, mass: float, error: float) -> Tuple[int, int]:
        """Inclusive range of integer masses that can hold decompositions of mass +- error. Empty if low > high."""
        return integer_mass_range(mass, error, self.precision, self.rounding_errors)

    def get_decompositions(self, mass: float, error: float, n_jobs: int = 1) -> List[Composition]:
        """
        Args:
            mass: Mass to be decomposed.
            error: Absolute error allowed between mass and the real mass of a decomposition.
            n_jobs: joblib workers used to decompose the integer masses of the range, 1 runs inline.

        Returns:
            All compositions c with |get_parent_mass(weights, c) - mass| <= error, without duplicates.
        """
        integer_masses = self._feasible_integer_masses(mass, error)
        if n_jobs == 1 or len(integer_masses) < 2:
            return self._decompose_integer_masses(mass, error, integer_masses)
        batches = _split_batches(integer_masses, n_jobs)
        results = joblib.Parallel(n_jobs=n_jobs)(
            joblib.delayed(self._decompose_integer_masses)(mass, error, batch) for batch in batches
        )
        return [composition for batch_result in results for composition in batch_result]

    def get_number_of_decompositions(self, mass: float, error: float) -> int:
        number = 0
        for integer_mass in self._feasible_integer_masses(mass, error):
            for composition in self.decomposer.get_all_decompositions(integer_mass):
                if abs(get_parent_mass(self.weights, composition) - mass) <= error:
                    number += 1
        return number

    def _feasible_integer_masses(self, mass: float, error: float) -> List[int]:
        low, high = self.get_integer_mass_range(mass, error)
        logger.debug("mass %g +- %g: integer range [%d, %d]", mass, error, low, high)
        return [m for m in range(low, high + 1) if self.decomposer.exist(m)]

    def _decompose_integer_masses(self, mass: float, error: float, integer_masses: Sequence[int]) -> List[Composition]:
        decompositions = []
        for integer_mass in integer_masses:
            for composition in self.decomposer.get_all_decompositions(integer_mass):
                if abs(get_parent_mass(self.weights, composition) - mass) <= error:
                    decompositions.append(composition)
        return decompositions


def integer_mass_range(mass: float, error: float, precision: float, rounding_errors: Tuple[float, float]) -> Tuple[int, int]:
    if not error >= 0:
        raise ValueError(f"error should be non-negative, but got {error}")
    min_error, max_error = rounding_errors
    # rounded outwards, the real re-check afterwards removes what does not fit
    low = math.floor((1 + min_error) * (mass - error) / precision)
    high = math.ceil((1 + max_error) * (mass + error) / precision)
    return max(low, 0), high


def _split_batches(items: Sequence, n_jobs: int) -> List[Sequence]:
    n_workers = joblib.cpu_count() if n_jobs < 0 else n_jobs
    batch_size = max(1, math.ceil(len(items) / (max(n_workers, 1) * 4)))
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]
