"""
Damping mode families.

Each family module exposes response/gradient/constrain/constrain_jacobian
and a ModeFamilySpec bundle; this package keeps the registry that maps a
ModeFamily to its bundle.

Families
--------
- ZeroDay [corner, peak]: single symmetric peak
- Unicorn [corner, peak, n]: symmetric peak, soft-integer sharpness
- TwoCities [corner, peak, n_r, n_l]: asymmetric peak, soft-integer flanks
- ThreeWiseMen [corner, peak, gamma]: flat-topped or notched peak
"""

from typing import Dict

from .base import (
    ModeFamily,
    ModeFamilySpec,
    ReparamBounds,
    sigmoid,
    sigmoid_derivative,
)
from . import zero_day, unicorn, two_cities, three_wise_men

FAMILY_REGISTRY: Dict[ModeFamily, ModeFamilySpec] = {
    ModeFamily.ZERO_DAY: zero_day.SPEC,
    ModeFamily.UNICORN: unicorn.SPEC,
    ModeFamily.TWO_CITIES: two_cities.SPEC,
    ModeFamily.THREE_WISE_MEN: three_wise_men.SPEC,
}

TYPE_CODES: Dict[ModeFamily, int] = {
    ModeFamily.ZERO_DAY: 0,
    ModeFamily.UNICORN: 1,
    ModeFamily.TWO_CITIES: 2,
    ModeFamily.THREE_WISE_MEN: 3,
}
"""Numeric type codes used in mode summaries ("Type 2 --- ...")."""


def get_family_spec(family) -> ModeFamilySpec:
    """Return the capability bundle for a family (enum or name)."""
    return FAMILY_REGISTRY[ModeFamily.from_name(family)]


__all__ = [
    'ModeFamily',
    'ModeFamilySpec',
    'ReparamBounds',
    'FAMILY_REGISTRY',
    'TYPE_CODES',
    'get_family_spec',
    'sigmoid',
    'sigmoid_derivative',
]
