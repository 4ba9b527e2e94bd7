import logging
from itertools import batched, chain
from typing import List, Optional, Sequence

import joblib
import numpy as np
import polars as pl

from .config import DecompositionConfig
from .weights import Weights
from .decomposition.real_decomposer import RealMassDecomposer
from .decomposition.two_mass_decomposer import TwoMassDecomposer
from .decomposition.utils import composition_to_string

logger = logging.getLogger(__name__)


def decompose_mass(
    mass_series: pl.Series,
    weights: Weights,
    error: Optional[float] = None,
    n_jobs: int = 1,
    memo_depth: int = 1,
    batch_size: int = 1000,
    config: Optional[DecompositionConfig] = None,
) -> pl.Series:
    """
    Return a Polars Series of all decompositions of each mass, within an absolute error.
    Null masses give null entries. If config is given, its error, n_jobs and memo_depth are used
    instead of the keyword arguments.

    The data type is:
        pl.Series(pl.List(pl.Array(inner=pl.Int32, shape=(weights.size(),))))

    Example usage:

        weights = Weights([1.007825, 12.0, 14.003074, 15.994915], precision=1e-5)
        df = pl.DataFrame({"mass": [180.063388, 194.079038]})
        df = df.with_columns(
            pl.col("mass").map_batches(
                function=lambda x: decompose_mass(mass_series=x, weights=weights, error=1e-4),
                return_dtype=pl.List(pl.Array(pl.Int32, 4)),
            ).alias("compositions")
        )
    """
    if config is not None:
        assert isinstance(config, DecompositionConfig), f"config should be a DecompositionConfig, but got {type(config)}"
        error, n_jobs, memo_depth = config.error, config.n_jobs, config.memo_depth
    assert isinstance(mass_series, pl.Series), f"mass_series should be a Polars Series, but got {type(mass_series)}"
    assert mass_series.dtype == pl.Float64, f"mass_series should be of type Float64, but got {mass_series.dtype}"
    assert isinstance(weights, Weights), f"weights should be a Weights instance, but got {type(weights)}"
    assert weights.size() > 0, "weights should hold at least one alphabet mass"
    assert isinstance(error, (float, int)), f"error should be a float or int, but got {type(error)}"
    assert error >= 0, f"error should be a non-negative value, but got {error}"
    assert isinstance(n_jobs, int) and n_jobs != 0, f"n_jobs should be a non-zero integer, but got {n_jobs}"
    assert isinstance(batch_size, int) and batch_size > 0, f"batch_size should be a positive integer, but got {batch_size}"

    if config is not None:
        decomposer = RealMassDecomposer.from_config(weights, config)
    else:
        decomposer = RealMassDecomposer(weights, memo_depth=memo_depth)
    masses = mass_series.to_list()
    if n_jobs == 1 or len(masses) <= batch_size:
        results = _decompose_mass_batch(decomposer, masses, error)
    else:
        batches = list(batched(masses, batch_size))
        logger.debug("decomposing %d masses in %d batches", len(masses), len(batches))
        results = joblib.Parallel(n_jobs=n_jobs)(
            joblib.delayed(_decompose_mass_batch)(decomposer, batch, error) for batch in batches
        )
        results = list(chain(*results))
    return pl.Series(
        name=mass_series.name,
        values=results,
        dtype=pl.List(pl.Array(pl.Int32, weights.size())),
    )


def _decompose_mass_batch(
    decomposer: RealMassDecomposer, masses: Sequence[Optional[float]], error: float
) -> List[Optional[List[List[int]]]]:
    results = []
    for mass in masses:
        if mass is None:
            results.append(None)
            continue
        results.append([list(composition) for composition in decomposer.get_decompositions(mass, error)])
    return results


def decompose_mass_pairs(
    mass_a_series: pl.Series,
    mass_b_series: pl.Series,
    weights_a: Weights,
    weights_b: Weights,
    error_a: float,
    error_b: float,
) -> pl.Series:
    """
    Return a Polars Series of the compositions that decompose mass_a over weights_a and
    mass_b over weights_b at the same time, row by row.

    The data type is:
        pl.Series(pl.List(pl.Array(inner=pl.Int32, shape=(weights_a.size(),))))
    """
    assert isinstance(mass_a_series, pl.Series), f"mass_a_series should be a Polars Series, but got {type(mass_a_series)}"
    assert isinstance(mass_b_series, pl.Series), f"mass_b_series should be a Polars Series, but got {type(mass_b_series)}"
    assert mass_a_series.dtype == pl.Float64, f"mass_a_series should be of type Float64, but got {mass_a_series.dtype}"
    assert mass_b_series.dtype == pl.Float64, f"mass_b_series should be of type Float64, but got {mass_b_series.dtype}"
    assert isinstance(weights_a, Weights) and isinstance(weights_b, Weights), "weights_a and weights_b should be Weights instances"
    assert weights_a.size() > 0, "weights should hold at least one alphabet mass"
    assert error_a >= 0 and error_b >= 0, f"errors should be non-negative, but got {error_a} and {error_b}"
    if mass_a_series.len() != mass_b_series.len():
        raise ValueError(
            f"mass_a_series and mass_b_series must have the same length, but got lengths {mass_a_series.len()} and {mass_b_series.len()}."
        )

    decomposer = TwoMassDecomposer(weights_a, weights_b)
    results = []
    for mass_a, mass_b in zip(mass_a_series.to_list(), mass_b_series.to_list()):
        if mass_a is None or mass_b is None:
            results.append(None)
            continue
        compositions = decomposer.get_decompositions(mass_a, error_a, mass_b, error_b)
        results.append([list(composition) for composition in compositions])
    return pl.Series(
        name=mass_a_series.name,
        values=results,
        dtype=pl.List(pl.Array(pl.Int32, weights_a.size())),
    )


def parent_mass_series(composition_series: pl.Series, weights: Weights) -> pl.Series:
    """Real mass of each composition in a pl.Array(pl.Int32, N) series, computed in one matrix product."""
    assert isinstance(composition_series, pl.Series), f"composition_series should be a Polars Series, but got {type(composition_series)}"
    assert isinstance(composition_series.dtype, pl.Array), f"composition_series should be of type Array, but got {composition_series.dtype}"
    assert isinstance(weights, Weights), f"weights should be a Weights instance, but got {type(weights)}"
    if composition_series.dtype.size != weights.size():
        raise ValueError(
            f"compositions have {composition_series.dtype.size} entries, but the alphabet has {weights.size()}."
        )
    if composition_series.len() == 0:
        return pl.Series(name=composition_series.name, values=[], dtype=pl.Float64)

    compositions = composition_series.to_numpy().astype(np.float64)
    masses = compositions @ weights.get_masses()
    return pl.Series(name=composition_series.name, values=masses.tolist(), dtype=pl.Float64)


def compositions_to_strings(composition_series: pl.Series, names: Sequence[str]) -> pl.Series:
    """
    Formula-like strings for a series of composition lists, e.g. what decompose_mass returns.

    The data type is:
        pl.Series(pl.List(pl.Utf8))
    """
    assert isinstance(composition_series, pl.Series), f"composition_series should be a Polars Series, but got {type(composition_series)}"
    assert isinstance(composition_series.dtype, pl.List), f"composition_series should be of type List, but got {composition_series.dtype}"
    assert all(isinstance(name, str) for name in names), "names should be strings"

    results = []
    for compositions in composition_series.to_list():
        if compositions is None:
            results.append(None)
            continue
        results.append([composition_to_string(names, composition) for composition in compositions])
    return pl.Series(name=composition_series.name, values=results, dtype=pl.List(pl.Utf8))
