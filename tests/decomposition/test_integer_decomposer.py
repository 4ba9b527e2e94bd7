import pickle
import pytest
from mass_decomp import Weights
from mass_decomp.decomposition import (
    IntegerMassDecomposer,
    ClassicalDPMassDecomposer,
    get_integer_parent_mass,
)


def _brute_force(weights, mass):
    results = []

    def recurse(index, remaining, counts):
        if index == len(weights):
            if remaining == 0:
                results.append(tuple(counts))
            return
        if weights[index] == 0:
            recurse(index + 1, remaining, counts + [0])
            return
        for count in range(remaining // weights[index] + 1):
            recurse(index + 1, remaining - count * weights[index], counts + [count])

    if mass >= 0:
        recurse(0, mass, [])
    return set(results)


def _small_weights() -> Weights:
    # 6, 7, 11, 15
    return Weights([0.6, 0.7, 1.1, 1.5], precision=0.1)


EXPECTED_44 = {
    (0, 2, 0, 2),
    (0, 1, 2, 1),
    (3, 0, 1, 1),
    (0, 0, 4, 0),
    (2, 3, 1, 0),
    (5, 2, 0, 0),
}


def test_small_weights_discretization() -> None:
    assert _small_weights().get_weights().tolist() == [6, 7, 11, 15]


@pytest.mark.parametrize("decomposer_class", [IntegerMassDecomposer, ClassicalDPMassDecomposer])
def test_exist(decomposer_class) -> None:
    decomposer = decomposer_class(_small_weights())
    assert decomposer.exist(14)
    assert decomposer.exist(13)
    assert not decomposer.exist(16)
    assert decomposer.exist(0)
    assert not decomposer.exist(-6)


@pytest.mark.parametrize("decomposer_class", [IntegerMassDecomposer, ClassicalDPMassDecomposer])
def test_all_decompositions(decomposer_class) -> None:
    decomposer = decomposer_class(_small_weights())
    decompositions = decomposer.get_all_decompositions(44)
    assert len(decompositions) == 6
    assert set(decompositions) == EXPECTED_44
    assert decomposer.get_number_of_decompositions(44) == 6
    assert decomposer.get_number_of_decompositions(100) == 40
    assert decomposer.get_all_decompositions(16) == []
    assert decomposer.get_all_decompositions(0) == [(0, 0, 0, 0)]


@pytest.mark.parametrize("decomposer_class", [IntegerMassDecomposer, ClassicalDPMassDecomposer])
def test_one_decomposition(decomposer_class) -> None:
    weights = _small_weights()
    decomposer = decomposer_class(weights)
    assert decomposer.get_decomposition(16) is None
    for mass in range(0, 120):
        decomposition = decomposer.get_decomposition(mass)
        if decomposer.exist(mass):
            assert get_integer_parent_mass(weights, decomposition) == mass
        else:
            assert decomposition is None


@pytest.mark.parametrize("memo_depth", [0, 1, 2, 3, 10])
def test_memo_depth_gives_the_same_result(memo_depth) -> None:
    decomposer = IntegerMassDecomposer(_small_weights(), memo_depth=memo_depth)
    assert set(decomposer.get_all_decompositions(44)) == EXPECTED_44
    assert decomposer.get_number_of_decompositions(100) == 40
    decomposer.clear_cache()
    assert decomposer.get_number_of_decompositions(100) == 40


def test_completeness_against_brute_force() -> None:
    weights = Weights([197.0, 218.0, 323.0, 460.0], precision=1.0)
    integer_weights = weights.get_weights().tolist()
    decomposer = IntegerMassDecomposer(weights)
    for mass in range(0, 5001, 100):
        expected = _brute_force(integer_weights, mass)
        decompositions = decomposer.get_all_decompositions(mass)
        assert len(decompositions) == len(set(decompositions)), mass
        assert set(decompositions) == expected, mass
        assert decomposer.get_number_of_decompositions(mass) == len(expected), mass
        assert decomposer.exist(mass) == bool(expected), mass
        for decomposition in decompositions:
            assert get_integer_parent_mass(weights, decomposition) == mass


def test_classical_dp_agrees_with_residue_table_decomposer() -> None:
    weights = Weights([2.0, 5.0, 9.0, 13.0], precision=1.0)
    fast = IntegerMassDecomposer(weights)
    classical = ClassicalDPMassDecomposer(weights)
    for mass in range(150, -1, -1):
        assert fast.exist(mass) == classical.exist(mass)
        assert set(fast.get_all_decompositions(mass)) == set(classical.get_all_decompositions(mass))
        assert fast.get_number_of_decompositions(mass) == classical.get_number_of_decompositions(mass)


def test_unsorted_weights_keep_caller_order() -> None:
    weights = Weights([15.0, 6.0, 11.0, 7.0], precision=1.0)
    decomposer = IntegerMassDecomposer(weights)
    expected = {(c[3], c[0], c[2], c[1]) for c in EXPECTED_44}
    assert set(decomposer.get_all_decompositions(44)) == expected


def test_zero_weight_has_zero_multiplicity() -> None:
    weights = Weights([0.0, 1.0, 2.0], precision=1.0)
    for decomposer in (IntegerMassDecomposer(weights), ClassicalDPMassDecomposer(weights)):
        assert set(decomposer.get_all_decompositions(3)) == {(0, 3, 0), (0, 1, 1)}
        assert decomposer.get_number_of_decompositions(3) == 2
        assert decomposer.get_decomposition(0) == (0, 0, 0)


def test_negative_weight_raises() -> None:
    weights = Weights([-1.0, 2.0], precision=1.0)
    with pytest.raises(ValueError):
        IntegerMassDecomposer(weights)
    with pytest.raises(ValueError):
        ClassicalDPMassDecomposer(weights)
    with pytest.raises(ValueError):
        IntegerMassDecomposer(Weights([1.0], precision=1.0), memo_depth=-1)


def test_empty_alphabet() -> None:
    weights = Weights([], precision=1.0)
    for decomposer in (IntegerMassDecomposer(weights), ClassicalDPMassDecomposer(weights)):
        assert decomposer.exist(0)
        assert not decomposer.exist(5)
        assert decomposer.get_all_decompositions(0) == [()]
        assert decomposer.get_all_decompositions(5) == []
        assert decomposer.get_number_of_decompositions(0) == 1
        assert decomposer.get_decomposition(0) == ()
        assert decomposer.get_decomposition(5) is None


def test_decomposer_keeps_its_own_weights() -> None:
    weights = _small_weights()
    decomposer = IntegerMassDecomposer(weights)
    weights.set_precision(0.05)
    assert set(decomposer.get_all_decompositions(44)) == EXPECTED_44


def test_results_are_deterministic() -> None:
    decomposer = IntegerMassDecomposer(_small_weights())
    first = decomposer.get_all_decompositions(100)
    second = IntegerMassDecomposer(_small_weights()).get_all_decompositions(100)
    assert first == second
    assert first == decomposer.get_all_decompositions(100)


def test_decomposer_pickles_without_memo() -> None:
    decomposer = IntegerMassDecomposer(_small_weights())
    decomposer.get_all_decompositions(100)
    restored = pickle.loads(pickle.dumps(decomposer))
    assert restored._memo == {}
    assert set(restored.get_all_decompositions(44)) == EXPECTED_44
