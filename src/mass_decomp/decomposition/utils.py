import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

from ..weights import Weights


def get_parent_mass(weights: Weights, composition: Sequence[int]) -> float:
    """Real mass of a composition, from the real (not discretized) alphabet masses."""
    composition = np.asarray(composition, dtype=np.float64)
    if composition.shape[0] != weights.size():
        raise ValueError(f"composition has {composition.shape[0]} entries, but the alphabet has {weights.size()}")
    return float(np.inner(weights.alphabet_masses, composition))


def get_integer_parent_mass(weights: Weights, composition: Sequence[int]) -> int:
    if len(composition) != weights.size():
        raise ValueError(f"composition has {len(composition)} entries, but the alphabet has {weights.size()}")
    return sum(int(count) * weights.get_weight(i) for i, count in enumerate(composition))


def get_min_max_weights_rounding_errors(weights: Weights) -> Tuple[float, float]:
    """
    Relative rounding errors of the discretization, (precision * weight - mass) / mass.
    Returns the most negative error and the most positive one, each clipped at 0.
    """
    min_negative_error = 0.0
    max_positive_error = 0.0
    precision = weights.get_precision()
    for i in range(weights.size()):
        mass = weights.get_mass(i)
        if mass == 0:
            continue
        error = (precision * weights.get_weight(i) - mass) / mass
        if error < min_negative_error:
            min_negative_error = error
        elif error > max_positive_error:
            max_positive_error = error
    return min_negative_error, max_positive_error


def create_false_excluded_range(masses: Sequence[float], weights: Weights) -> Dict[float, Tuple[float, float]]:
    """
    For each mass, the interval its integer decompositions can fall into because of rounding,
    mass * (1 + min error) .. mass * (1 + max error).
    """
    min_error, max_error = get_min_max_weights_rounding_errors(weights)
    return {mass: (mass * (1 + min_error), mass * (1 + max_error)) for mass in masses}


def get_neighborhood_set(
    middle: float,
    range_: float,
    granularity: float,
    min_max: Optional[Tuple[float, float]] = None,
) -> List[float]:
    """
    Values spaced by granularity around middle (or around the interval min_max if given),
    extending range_ to either side, upper end excluded. Degenerate parameters give [middle].
    """
    if range_ <= 0 or granularity <= 0:
        return [middle]
    if min_max is None:
        if range_ < granularity:
            return [middle]
        start, stop = middle - range_, middle + range_
    else:
        if min_max[0] > min_max[1]:
            return [middle]
        start, stop = min_max[0] - range_, min_max[1] + range_
    # points are start + k * granularity
    values = []
    k = 0
    value = start
    while value < stop:
        values.append(value)
        k += 1
        value = start + k * granularity
    return values


def get_positive_neighborhood_set(
    middle: float,
    range_: float,
    granularity: float,
    min_max: Optional[Tuple[float, float]] = None,
) -> List[float]:
    return [value for value in get_neighborhood_set(middle, range_, granularity, min_max) if value >= 0]


def create_compomer(names: Sequence[str], composition: Sequence[int]) -> Dict[str, int]:
    """Maps alphabet names to their non-zero multiplicities."""
    if len(names) != len(composition):
        raise ValueError(f"got {len(names)} names for a composition of length {len(composition)}")
    return {name: int(count) for name, count in zip(names, composition) if count != 0}


def composition_to_string(names: Sequence[str], composition: Sequence[int]) -> str:
    """Formula-like string, e.g. ('C', 'H', 'O'), (6, 12, 6) -> 'C6H12O6'. Counts of 1 are written out."""
    return "".join(f"{name}{count}" for name, count in create_compomer(names, composition).items())
