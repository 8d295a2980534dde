"""
Area and yield normalization.

Converts the units a grower types into the form (hectares, kilograms,
tons per hectare) the deficit calculator works with. Unknown unit tags
are a programming/configuration error and are rejected immediately.
"""
from typing import Dict, Union

from fertiplan.services.fertilization_models import (
    AreaUnit,
    ConfigurationError,
    ProductionTarget,
    YieldUnit,
)
from fertiplan.services.fertilization_rules import (
    LB_TO_KG,
    MANZANA_TO_HECTARE,
    QUINTAL_TO_KG,
    TON_TO_KG,
)


class UnknownUnitError(ConfigurationError):
    """Raised for an area or yield unit outside the supported set."""
    pass


HECTARES_PER_AREA_UNIT: Dict[AreaUnit, float] = {
    AreaUnit.HECTARE: 1.0,
    AreaUnit.MANZANA: MANZANA_TO_HECTARE,
}

KG_PER_YIELD_UNIT: Dict[YieldUnit, float] = {
    YieldUnit.KILOGRAM: 1.0,
    YieldUnit.POUND: LB_TO_KG,
    YieldUnit.QUINTAL: QUINTAL_TO_KG,
    YieldUnit.TON: TON_TO_KG,
}


def parse_area_unit(unit: Union[AreaUnit, str]) -> AreaUnit:
    try:
        return AreaUnit(unit)
    except ValueError:
        raise UnknownUnitError(f"Unknown area unit: {unit!r}") from None


def parse_yield_unit(unit: Union[YieldUnit, str]) -> YieldUnit:
    try:
        return YieldUnit(unit)
    except ValueError:
        raise UnknownUnitError(f"Unknown yield unit: {unit!r}") from None


def normalize_area(value: float, unit: Union[AreaUnit, str]) -> float:
    """Area in hectares."""
    return value * HECTARES_PER_AREA_UNIT[parse_area_unit(unit)]


def normalize_yield(value: float, unit: Union[YieldUnit, str]) -> float:
    """Yield in kilograms."""
    return value * KG_PER_YIELD_UNIT[parse_yield_unit(unit)]


def hectares_to_area(hectares: float, unit: Union[AreaUnit, str]) -> float:
    return hectares / HECTARES_PER_AREA_UNIT[parse_area_unit(unit)]


def kilograms_to_yield(kilograms: float, unit: Union[YieldUnit, str]) -> float:
    return kilograms / KG_PER_YIELD_UNIT[parse_yield_unit(unit)]


def yield_per_hectare_tons(target: ProductionTarget) -> float:
    """
    Target yield expressed in tons per hectare.

    The grower states yield per one unit of the chosen area unit (e.g.
    quintales per manzana), so the normalized yield is divided by the size
    of one area unit in hectares.
    """
    yield_kg = normalize_yield(target.target_yield, target.yield_unit)
    return yield_kg / normalize_area(1.0, target.area_unit) / TON_TO_KG
