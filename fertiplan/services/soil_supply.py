"""
Soil supply model.

Converts raw laboratory readings into kg/ha of plant-relevant nutrient:
N, P2O5-equivalent and K2O-equivalent. Missing or zero readings fall back
to documented estimates instead of raising.
"""
from dataclasses import dataclass
import logging

from fertiplan.services.fertilization_models import NutrientTotals, SoilReading
from fertiplan.services.fertilization_rules import (
    CMOL_K_TO_PPM,
    K_CMOL_READING_LIMIT,
    K_TO_K2O,
    OM_NITROGEN_KG_HA_PER_PCT,
    P_TO_P2O5,
    PPM_TO_KG_HA,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoilConversionFactors:
    ppm_to_kg_ha: float = PPM_TO_KG_HA
    om_nitrogen_kg_ha_per_pct: float = OM_NITROGEN_KG_HA_PER_PCT
    p_to_p2o5: float = P_TO_P2O5
    k_to_k2o: float = K_TO_K2O
    cmol_k_to_ppm: float = CMOL_K_TO_PPM
    k_cmol_reading_limit: float = K_CMOL_READING_LIMIT


DEFAULT_SOIL_CONVERSION_FACTORS = SoilConversionFactors()


def nitrogen_supply_kg_ha(soil: SoilReading, factors: SoilConversionFactors = DEFAULT_SOIL_CONVERSION_FACTORS) -> float:
    """
    Direct N reading when available, otherwise an organic-matter estimate
    (kg N/ha/year released per % of organic matter).
    """
    if soil.nitrogen and soil.nitrogen > 0:
        return soil.nitrogen * factors.ppm_to_kg_ha
    return (soil.organic_matter_pct or 0.0) * factors.om_nitrogen_kg_ha_per_pct


def phosphorus_supply_kg_ha(soil: SoilReading, factors: SoilConversionFactors = DEFAULT_SOIL_CONVERSION_FACTORS) -> float:
    """P2O5-equivalent."""
    return (soil.phosphorus or 0.0) * factors.ppm_to_kg_ha * factors.p_to_p2o5


def potassium_ppm(soil: SoilReading, factors: SoilConversionFactors = DEFAULT_SOIL_CONVERSION_FACTORS) -> float:
    """
    K reading in ppm. Laboratories report exchangeable K either in ppm or in
    cmol/kg; values under the cmol limit are taken as cmol/kg.
    """
    k_value = soil.potassium or 0.0
    if 0 < k_value < factors.k_cmol_reading_limit:
        return k_value * factors.cmol_k_to_ppm
    return k_value


def potassium_supply_kg_ha(soil: SoilReading, factors: SoilConversionFactors = DEFAULT_SOIL_CONVERSION_FACTORS) -> float:
    """K2O-equivalent."""
    return potassium_ppm(soil, factors) * factors.ppm_to_kg_ha * factors.k_to_k2o


def calculate_soil_supply(
    soil: SoilReading,
    factors: SoilConversionFactors = DEFAULT_SOIL_CONVERSION_FACTORS
) -> NutrientTotals:
    """Available soil nutrients in kg/ha, before soil-efficiency factors."""
    supply = NutrientTotals(
        n=nitrogen_supply_kg_ha(soil, factors),
        p=phosphorus_supply_kg_ha(soil, factors),
        k=potassium_supply_kg_ha(soil, factors),
    )
    logger.debug(f"Soil supply kg/ha: N={supply.n:.1f} P2O5={supply.p:.1f} K2O={supply.k:.1f}")
    return supply
