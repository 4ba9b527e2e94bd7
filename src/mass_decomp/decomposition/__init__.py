from .residue_table import ExtendedResidueTable
from .integer_decomposer import (
    IntegerMassDecomposer,
    ClassicalDPMassDecomposer,
)
from .real_decomposer import RealMassDecomposer
from .two_mass_decomposer import TwoMassDecomposer
from .utils import (
    get_parent_mass,
    get_integer_parent_mass,
    get_min_max_weights_rounding_errors,
    create_false_excluded_range,
    get_neighborhood_set,
    get_positive_neighborhood_set,
    create_compomer,
    composition_to_string,
)
