from .weights import Weights
from .config import DecompositionConfig
from .decomposition import (
    ExtendedResidueTable,
    IntegerMassDecomposer,
    ClassicalDPMassDecomposer,
    RealMassDecomposer,
    TwoMassDecomposer,
    get_parent_mass,
    get_integer_parent_mass,
    composition_to_string,
)
from .polars_interface import (
    decompose_mass,
    decompose_mass_pairs,
    parent_mass_series,
    compositions_to_strings,
)

__all__ = [
    "Weights",
    "DecompositionConfig",
    "ExtendedResidueTable",
    "IntegerMassDecomposer",
    "ClassicalDPMassDecomposer",
    "RealMassDecomposer",
    "TwoMassDecomposer",
    "get_parent_mass",
    "get_integer_parent_mass",
    "composition_to_string",
    "decompose_mass",
    "decompose_mass_pairs",
    "parent_mass_series",
    "compositions_to_strings",
]
