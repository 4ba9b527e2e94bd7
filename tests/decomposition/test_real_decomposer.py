import itertools
import pytest
from mass_decomp import Weights, DecompositionConfig
from mass_decomp.decomposition import RealMassDecomposer, get_parent_mass

# H, C, N, O, P, S
CHNOPS_MASSES = [1.007825, 12.0, 14.003074, 15.994915, 30.973762, 31.972071]


@pytest.fixture(scope="module")
def chnops_decomposer() -> RealMassDecomposer:
    weights = Weights(CHNOPS_MASSES, precision=1e-5)
    weights.divide_by_gcd()
    return RealMassDecomposer(weights)


def _brute_force(weights: Weights, mass: float, error: float):
    ranges = [range(int((mass + error) // weights.get_mass(i)) + 1) for i in range(weights.size())]
    return {
        composition
        for composition in itertools.product(*ranges)
        if abs(get_parent_mass(weights, composition) - mass) <= error
    }


def test_chnops_decompositions_are_within_error(chnops_decomposer) -> None:
    error = 1e-4
    for mass in range(100, 401, 100):
        decompositions = chnops_decomposer.get_decompositions(float(mass), error)
        assert len(decompositions) == len(set(decompositions))
        for composition in decompositions:
            assert abs(get_parent_mass(chnops_decomposer.weights, composition) - mass) <= error


def test_chnops_finds_glucose(chnops_decomposer) -> None:
    decompositions = chnops_decomposer.get_decompositions(180.06339, 1e-4)
    assert (12, 6, 0, 6, 0, 0) in decompositions
    assert chnops_decomposer.get_number_of_decompositions(180.06339, 1e-4) == len(decompositions)


@pytest.mark.parametrize("mass", [5.0, 7.3, 10.0, 15.5])
def test_rounding_does_not_lose_decompositions(mass) -> None:
    # 10.3 -> 10, 20.7 -> 21, 29.6 -> 30
    weights = Weights([1.03, 2.07, 2.96], precision=0.1)
    assert weights.get_weights().tolist() == [10, 21, 30]
    decomposer = RealMassDecomposer(weights)
    error = 0.1
    decompositions = decomposer.get_decompositions(mass, error)
    assert set(decompositions) == _brute_force(weights, mass, error)
    assert decomposer.get_number_of_decompositions(mass, error) == len(decompositions)


def test_integer_mass_range() -> None:
    decomposer = RealMassDecomposer(Weights([2.0, 3.0], precision=1.0))
    assert decomposer.get_integer_mass_range(10.0, 0.5) == (9, 11)
    assert decomposer.get_integer_mass_range(10.0, 0.0) == (10, 10)
    assert decomposer.get_integer_mass_range(0.2, 0.5) == (0, 1)
    with pytest.raises(ValueError):
        decomposer.get_integer_mass_range(10.0, -0.1)
    with pytest.raises(ValueError):
        decomposer.get_decompositions(10.0, -0.1)


def test_exact_integer_alphabet() -> None:
    decomposer = RealMassDecomposer(Weights([2.0, 3.0], precision=1.0))
    assert set(decomposer.get_decompositions(7.0, 0.0)) == {(2, 1)}
    assert set(decomposer.get_decompositions(7.0, 1.0)) == {(3, 0), (0, 2), (2, 1), (4, 0), (1, 2)}
    assert decomposer.get_decompositions(1.0, 0.4) == []


def test_parallel_matches_sequential() -> None:
    decomposer = RealMassDecomposer(Weights([0.6, 0.7, 1.1, 1.5], precision=0.1))
    sequential = decomposer.get_decompositions(10.0, 0.3)
    parallel = decomposer.get_decompositions(10.0, 0.3, n_jobs=2)
    assert len(sequential) > 0
    assert sorted(parallel) == sorted(sequential)


def test_empty_alphabet() -> None:
    decomposer = RealMassDecomposer(Weights([], precision=1.0))
    assert decomposer.get_decompositions(0.0, 0.1) == [()]
    assert decomposer.get_decompositions(5.0, 0.1) == []


def test_results_are_deterministic(chnops_decomposer) -> None:
    first = chnops_decomposer.get_decompositions(200.0, 1e-3)
    second = chnops_decomposer.get_decompositions(200.0, 1e-3)
    assert first == second


def _brute_force_integer_window(integer_weights, low: int, high: int):
    w0, w1, w2, w3 = integer_weights
    results = set()
    for c3 in range(high // w3 + 1):
        r3 = c3 * w3
        for c2 in range((high - r3) // w2 + 1):
            r2 = r3 + c2 * w2
            for c1 in range((high - r2) // w1 + 1):
                r1 = r2 + c1 * w1
                first = max(0, -(-(low - r1) // w0))
                for c0 in range(first, (high - r1) // w0 + 1):
                    results.add((c0, c1, c2, c3))
    return results


def test_window_completeness_against_brute_force() -> None:
    weights = Weights([197.0, 218.0, 323.0, 460.0], precision=1.0)
    decomposer = RealMassDecomposer(weights)
    error = 50
    for mass in range(0, 20001, 100):
        decompositions = decomposer.get_decompositions(float(mass), float(error))
        assert len(decompositions) == len(set(decompositions)), mass
        assert set(decompositions) == _brute_force_integer_window((197, 218, 323, 460), mass - error, mass + error), mass


def test_gcd_reduction_keeps_query_results() -> None:
    old = Weights([3.0, 5.0, 8.0], precision=0.1)
    reduced = old.copy()
    assert reduced.divide_by_gcd()
    assert reduced.get_precision() == pytest.approx(1.0)
    old_decomposer = RealMassDecomposer(old)
    reduced_decomposer = RealMassDecomposer(reduced)
    for mass in range(60):
        for error in (0.0, 0.5):
            assert set(old_decomposer.get_decompositions(float(mass), error)) == set(
                reduced_decomposer.get_decompositions(float(mass), error)
            ), (mass, error)


def test_decomposer_from_config() -> None:
    weights = Weights([0.6, 0.7, 1.1, 1.5], precision=0.1)
    config = DecompositionConfig(error=0.3, precision=0.1, n_jobs=2, memo_depth=0)
    decomposer = RealMassDecomposer.from_config(weights, config)
    assert decomposer.decomposer.memo_depth == 0
    assert decomposer.config is config
    assert sorted(decomposer.decompose(10.0)) == sorted(RealMassDecomposer(weights).get_decompositions(10.0, 0.3))

    with pytest.raises(ValueError):
        RealMassDecomposer(weights).decompose(10.0)
