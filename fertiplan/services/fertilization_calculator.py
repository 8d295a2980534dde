"""
Fertilization Calculator Service.

Calculates fertilizer requirements and plans based on:
- Soil analysis (nutrient availability)
- Crop production target (area, yield and units)
- Crop removal rates (kg nutrient per ton of harvest)
- Soil and fertilizer efficiency factors
- Fertilizer catalog and prices

For each primary nutrient:
    demand      = yield (t/ha) x removal rate
    effective   = soil supply x soil efficiency
    deficit     = max(0, demand - effective)
    per hectare = deficit / fertilizer efficiency
    total       = per hectare x area (ha)

The area-scaled totals feed the mix optimizer, which produces a traditional
and a technological plan.
"""
from typing import Dict, Optional, Sequence, Tuple
import logging

from fertiplan.services.fertilization_models import (
    EfficiencyParameters,
    FertilizerProduct,
    Nutrient,
    NutrientRequirement,
    NutrientTotals,
    PlanningResult,
    PRIMARY_NUTRIENTS,
    ProductionTarget,
    RemovalRate,
    RemovalRateTable,
    SoilReading,
)
from fertiplan.services.fertilizer_mix_optimizer import (
    DEFAULT_MIX_THRESHOLDS,
    MixThresholds,
    build_plan,
    technological_policy,
    traditional_policy,
)
from fertiplan.services.soil_corrections import build_soil_corrections
from fertiplan.services.soil_supply import (
    DEFAULT_SOIL_CONVERSION_FACTORS,
    SoilConversionFactors,
    calculate_soil_supply,
)
from fertiplan.services.unit_conversion import normalize_area, yield_per_hectare_tons

logger = logging.getLogger(__name__)

NUTRIENT_LABELS: Dict[Nutrient, Tuple[str, str]] = {
    Nutrient.N: ("Nitrógeno", "N"),
    Nutrient.P: ("Fósforo", "P₂O₅"),
    Nutrient.K: ("Potasio", "K₂O"),
}


def calculate_nutrient_requirement(
    nutrient: Nutrient,
    removal_rate: float,
    soil_supply_kg_ha: float,
    yield_per_ha_tons: float,
    area_ha: float,
    soil_efficiency: float,
    fertilizer_efficiency: float
) -> NutrientRequirement:
    """Balance one nutrient. A soil surplus never yields a negative requirement."""
    demand_per_ha = yield_per_ha_tons * removal_rate
    effective_supply = soil_supply_kg_ha * soil_efficiency
    raw_deficit = max(0.0, demand_per_ha - effective_supply)
    to_apply_per_ha = raw_deficit / fertilizer_efficiency
    total_required = to_apply_per_ha * area_ha

    name, symbol = NUTRIENT_LABELS[nutrient]
    return NutrientRequirement(
        nutrient=nutrient,
        name=name,
        symbol=symbol,
        soil_supply=round(effective_supply),
        crop_demand=round(demand_per_ha),
        deficit_per_ha=round(to_apply_per_ha),
        total_deficit=total_required,
    )


class FertilizationCalculator:
    """Deficit calculator and planning orchestrator."""

    def __init__(
        self,
        soil_factors: SoilConversionFactors = DEFAULT_SOIL_CONVERSION_FACTORS,
        mix_thresholds: MixThresholds = DEFAULT_MIX_THRESHOLDS
    ):
        self.soil_factors = soil_factors
        self.mix_thresholds = mix_thresholds

    def calculate_requirements(
        self,
        soil_supply: NutrientTotals,
        removal_rate: RemovalRate,
        yield_per_ha_tons: float,
        area_ha: float,
        efficiency: EfficiencyParameters
    ) -> Tuple[NutrientRequirement, ...]:
        return tuple(
            calculate_nutrient_requirement(
                nutrient=nutrient,
                removal_rate=removal_rate.get(nutrient),
                soil_supply_kg_ha=soil_supply.get(nutrient),
                yield_per_ha_tons=yield_per_ha_tons,
                area_ha=area_ha,
                soil_efficiency=efficiency.soil.get(nutrient),
                fertilizer_efficiency=efficiency.fertilizer.get(nutrient),
            )
            for nutrient in PRIMARY_NUTRIENTS
        )

    def calculate(
        self,
        soil: SoilReading,
        target: ProductionTarget,
        removal_rates: RemovalRateTable,
        catalog: Sequence[FertilizerProduct],
        efficiency: Optional[EfficiencyParameters] = None
    ) -> PlanningResult:
        """
        Build the requirements, both fertilization plans and the soil
        corrections for one production target.

        Inputs are treated as read-only snapshots; the same inputs always
        produce an equal result.
        """
        efficiency = efficiency or EfficiencyParameters()

        area_ha = normalize_area(target.area, target.area_unit)
        yield_t_ha = yield_per_hectare_tons(target)
        removal_rate = removal_rates.rate_for(target.crop)
        soil_supply = calculate_soil_supply(soil, self.soil_factors)

        requirements = self.calculate_requirements(
            soil_supply, removal_rate, yield_t_ha, area_ha, efficiency
        )
        required = NutrientTotals(*(r.total_deficit for r in requirements))

        traditional = build_plan(required, catalog, traditional_policy(), self.mix_thresholds)
        technological = build_plan(
            required,
            catalog,
            technological_policy(efficiency.nitrogen_efficiency_boost),
            self.mix_thresholds,
        )

        logger.info(
            f"Planned {target.crop} on {area_ha:.2f} ha at {yield_t_ha:.2f} t/ha: "
            f"required N={required.n:.1f} P2O5={required.p:.1f} K2O={required.k:.1f} kg"
        )

        return PlanningResult(
            target=target,
            area_ha=area_ha,
            yield_per_ha_tons=yield_t_ha,
            requirements=requirements,
            traditional=traditional,
            technological=technological,
            soil_corrections=build_soil_corrections(soil),
            nitrogen_savings_pct=round((efficiency.nitrogen_efficiency_boost - 1) * 100),
        )


fertilization_calculator = FertilizationCalculator()


def calculate_fertilization(
    soil: SoilReading,
    target: ProductionTarget,
    removal_rates: RemovalRateTable,
    catalog: Sequence[FertilizerProduct],
    efficiency: Optional[EfficiencyParameters] = None
) -> PlanningResult:
    return fertilization_calculator.calculate(soil, target, removal_rates, catalog, efficiency)
