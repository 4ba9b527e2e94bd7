import logging
import math
import numpy as np
from numpy.typing import NDArray
from typing import Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import DecompositionConfig

logger = logging.getLogger(__name__)

AUTOMATIC_PRECISION_FACTOR = 4.0e-5


def round_half_away(values):
    """
    Rounds to the nearest integer, ties away from zero (2.5 -> 3, -7.5 -> -8).
    np.round rounds ties to even, which is not what we want for discretization.
    """
    values = np.asarray(values, dtype=np.float64)
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


class Weights:
    """
    Integer discretization of an ordered alphabet of real masses.

    weights[i] == round_half_away(alphabet_masses[i] / precision) for every i,
    until divide_by_gcd() shrinks the integers and scales the precision.

    Example usage:

        weights = Weights([3.0, 5.0, 8.0], precision=0.1)   # 30, 50, 80
        weights.divide_by_gcd()                             # 3, 5, 8, precision 1.0
    """

    def __init__(self, masses: Iterable[float], precision: float):
        self.alphabet_masses: NDArray[np.float64] = np.array(list(masses), dtype=np.float64)
        self.precision = 0.0
        self.weights: NDArray[np.int64] = np.zeros(0, dtype=np.int64)
        self.set_precision(precision)

    @classmethod
    def from_masses(cls, masses: Iterable[float], config: 'DecompositionConfig') -> 'Weights':
        """
        Builds weights the way a decomposition run is usually set up: if the config has no precision,
        it is derived from the smallest mass (floored, to avoid decimal noise), and the integer
        weights are reduced by their gcd if the config asks for it.
        """
        masses = list(masses)
        precision = config.precision
        if precision is None:
            if len(masses) == 0:
                raise ValueError("cannot derive an automatic precision from an empty alphabet.")
            precision = math.floor(min(masses)) * AUTOMATIC_PRECISION_FACTOR
            if not precision > 0:
                raise ValueError(
                    f"automatic precision is floor(smallest mass) * {AUTOMATIC_PRECISION_FACTOR:g}, which needs a smallest "
                    f"mass of at least 1.0, but got {min(masses)}. Set an explicit precision instead."
                )
            logger.debug("automatic precision %g", precision)
        weights = cls(masses, precision)
        if config.divide_by_gcd:
            weights.divide_by_gcd()
        return weights

    def set_precision(self, precision: float) -> None:
        """Re-discretizes the stored masses. Any decomposer built before this call keeps its own snapshot."""
        if not precision > 0:
            raise ValueError(f"precision should be a positive value, but got {precision}")
        self.precision = float(precision)
        self.weights = round_half_away(self.alphabet_masses / self.precision).astype(np.int64)

    def divide_by_gcd(self) -> bool:
        """
        Divides the integer weights by their gcd and multiplies the precision by it.

        For example, masses 3.0, 5.0, 8.0 at precision 0.1 give weights 30, 50, 80;
        afterwards the weights are 3, 5, 8 with precision 1.0.
        The integers are rescaled directly, set_precision() is not used since
        rounding could give a different result.

        Returns:
            True if anything changed (gcd > 1), False if the gcd was already 1
            or there are fewer than two weights.
        """
        if self.weights.shape[0] < 2:
            return False
        d = int(np.gcd.reduce(self.weights))
        if d <= 1:
            return False
        self.precision *= d
        self.weights = self.weights // d
        logger.debug("divided weights by gcd %d, new precision %g", d, self.precision)
        return True

    def swap(self, index1: int, index2: int) -> None:
        self.weights[[index1, index2]] = self.weights[[index2, index1]]
        self.alphabet_masses[[index1, index2]] = self.alphabet_masses[[index2, index1]]

    def copy(self) -> 'Weights':
        other = Weights.__new__(Weights)
        other.alphabet_masses = self.alphabet_masses.copy()
        other.weights = self.weights.copy()
        other.precision = self.precision
        return other

    def size(self) -> int:
        return int(self.weights.shape[0])

    def get_weight(self, index: int) -> int:
        return int(self.weights[index])

    def get_mass(self, index: int) -> float:
        return float(self.alphabet_masses[index])

    def get_precision(self) -> float:
        return self.precision

    def get_weights(self) -> NDArray[np.int64]:
        weights = self.weights.copy()
        weights.flags.writeable = False
        return weights

    def get_masses(self) -> NDArray[np.float64]:
        masses = self.alphabet_masses.copy()
        masses.flags.writeable = False
        return masses

    def __len__(self) -> int:
        return self.size()

    def __getitem__(self, index: int) -> int:
        return self.get_weight(index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Weights):
            return NotImplemented
        return (
            self.precision == other.precision
            and np.array_equal(self.weights, other.weights)
            and np.array_equal(self.alphabet_masses, other.alphabet_masses)
        )

    def __repr__(self) -> str:
        return f"Weights(weights={self.weights.tolist()}, precision={self.precision:g})"


def ascending_order(weights: Weights, exclude_zero: bool = False) -> list:
    """Indices of the weights, smallest weight first (stable for equal weights)."""
    order = [int(i) for i in np.argsort(weights.weights, kind="stable")]
    if exclude_zero:
        order = [i for i in order if weights.weights[i] != 0]
    return order


def validate_non_negative(weights: Weights, strict: Optional[bool] = False) -> None:
    if weights.size() == 0:
        return
    smallest = int(weights.weights.min())
    if smallest < 0 or (strict and smallest == 0):
        bound = "positive" if strict else "non-negative"
        raise ValueError(f"all integer weights must be {bound}, but got {weights.weights.tolist()}")
