"""
Domain values for the fertilization planning engine.

Every value here is immutable and produced fresh by each planning run.
Catalog, removal-rate table and efficiency parameters are validated on
construction so a malformed configuration fails before any plan is built.
"""
from typing import Dict, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum
import math

from fertiplan.services.fertilization_rules import (
    DEFAULT_BAG_WEIGHT_LB,
    DEFAULT_FERTILIZER_EFFICIENCY,
    DEFAULT_NITROGEN_EFFICIENCY_BOOST,
    DEFAULT_SOIL_EFFICIENCY,
    LB_TO_KG,
)


class ConfigurationError(Exception):
    """Raised when catalog, removal rates, parameters or units are invalid."""
    pass


class Nutrient(str, Enum):
    """Nutrient channels a fertilizer product can carry.

    P and K are expressed as P2O5 and K2O equivalents, matching fertilizer
    grade labels (e.g. 18-46-0).
    """
    N = "N"
    P = "P"
    K = "K"
    S = "S"
    CA = "Ca"
    MG = "Mg"
    ZN = "Zn"
    B = "B"
    FE = "Fe"
    MN = "Mn"
    CU = "Cu"


PRIMARY_NUTRIENTS: Tuple[Nutrient, ...] = (Nutrient.N, Nutrient.P, Nutrient.K)


class FertilizerCategory(str, Enum):
    COMMODITY = "commodity"
    SPECIALIZED = "specialized"


class PlanType(str, Enum):
    TRADITIONAL = "traditional"
    TECHNOLOGICAL = "technological"


class Severity(str, Enum):
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


class AreaUnit(str, Enum):
    HECTARE = "hectare"
    MANZANA = "manzana"


class YieldUnit(str, Enum):
    KILOGRAM = "kg"
    POUND = "lb"
    QUINTAL = "quintal"
    TON = "ton"


@dataclass(frozen=True)
class NutrientTotals:
    """N, P2O5 and K2O quantities addressed by nutrient tag."""
    n: float = 0.0
    p: float = 0.0
    k: float = 0.0

    def get(self, nutrient: Nutrient) -> float:
        if nutrient is Nutrient.N:
            return self.n
        if nutrient is Nutrient.P:
            return self.p
        if nutrient is Nutrient.K:
            return self.k
        raise KeyError(f"{nutrient.value} is not a primary nutrient")

    def __add__(self, other: "NutrientTotals") -> "NutrientTotals":
        return NutrientTotals(self.n + other.n, self.p + other.p, self.k + other.k)

    def __sub__(self, other: "NutrientTotals") -> "NutrientTotals":
        return NutrientTotals(self.n - other.n, self.p - other.p, self.k - other.k)


@dataclass(frozen=True)
class SoilReading:
    """Soil analysis values as extracted from a laboratory report."""
    ph: float
    organic_matter_pct: float = 0.0
    nitrogen: float = 0.0  # ppm
    phosphorus: float = 0.0  # ppm
    potassium: float = 0.0  # cmol/kg or ppm
    calcium: float = 0.0  # cmol/kg
    magnesium: float = 0.0  # cmol/kg
    cation_exchange_capacity: float = 0.0
    texture: str = ""
    crop: Optional[str] = None
    other_data: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProductionTarget:
    """Crop, area and target yield. Yield is per one unit of ``area_unit``."""
    crop: str
    area: float
    area_unit: AreaUnit
    target_yield: float
    yield_unit: YieldUnit


@dataclass(frozen=True)
class RemovalRate:
    """kg of nutrient removed per ton of harvested yield."""
    n: float
    p: float
    k: float

    def __post_init__(self):
        for name, value in (("n", self.n), ("p", self.p), ("k", self.k)):
            if value is None or not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"Removal rate '{name}' must be a non-negative number, got {value!r}")

    def get(self, nutrient: Nutrient) -> float:
        return NutrientTotals(self.n, self.p, self.k).get(nutrient)


DEFAULT_CROP_KEY = "default"


@dataclass(frozen=True)
class RemovalRateTable:
    """Per-crop removal rates with a mandatory ``default`` entry."""
    rates: Dict[str, RemovalRate] = field(hash=False)

    def __post_init__(self):
        normalized: Dict[str, RemovalRate] = {}
        for key, rate in self.rates.items():
            crop = key.strip().lower()
            if crop in normalized:
                raise ConfigurationError(f"Duplicate removal rate for crop '{crop}' (keys are case-insensitive)")
            normalized[crop] = rate
        if DEFAULT_CROP_KEY not in normalized:
            raise ConfigurationError("Removal rate table requires a 'default' entry")
        for key, rate in normalized.items():
            if not isinstance(rate, RemovalRate):
                raise ConfigurationError(f"Removal rate for '{key}' is malformed")
        object.__setattr__(self, "rates", normalized)

    def rate_for(self, crop: str) -> RemovalRate:
        """Resolve a crop's removal rate, falling back to ``default``."""
        key = (crop or "").strip().lower()
        return self.rates.get(key, self.rates[DEFAULT_CROP_KEY])

    @property
    def crops(self) -> Tuple[str, ...]:
        return tuple(self.rates.keys())


@dataclass(frozen=True)
class EfficiencyParameters:
    """Soil and fertilizer efficiencies plus the nitrogen-efficiency boost."""
    soil: NutrientTotals = NutrientTotals(**DEFAULT_SOIL_EFFICIENCY)
    fertilizer: NutrientTotals = NutrientTotals(**DEFAULT_FERTILIZER_EFFICIENCY)
    nitrogen_efficiency_boost: float = DEFAULT_NITROGEN_EFFICIENCY_BOOST

    def __post_init__(self):
        for nutrient in PRIMARY_NUTRIENTS:
            soil_eff = self.soil.get(nutrient)
            fert_eff = self.fertilizer.get(nutrient)
            if not math.isfinite(soil_eff) or soil_eff < 0:
                raise ConfigurationError(f"Soil efficiency for {nutrient.value} must be >= 0, got {soil_eff!r}")
            if not math.isfinite(fert_eff) or fert_eff <= 0:
                raise ConfigurationError(f"Fertilizer efficiency for {nutrient.value} must be > 0, got {fert_eff!r}")
        if not math.isfinite(self.nitrogen_efficiency_boost) or self.nitrogen_efficiency_boost <= 0:
            raise ConfigurationError(
                f"Nitrogen efficiency boost must be > 0, got {self.nitrogen_efficiency_boost!r}"
            )


@dataclass(frozen=True)
class FertilizerProduct:
    """A bagged fertilizer product with its percentage composition."""
    id: str
    name: str
    category: FertilizerCategory
    price: float  # per bag
    composition: Dict[Nutrient, float] = field(default_factory=dict, hash=False)
    bag_weight_lb: float = DEFAULT_BAG_WEIGHT_LB

    def __post_init__(self):
        if not self.id:
            raise ConfigurationError("Fertilizer product requires an id")
        if not isinstance(self.category, FertilizerCategory):
            raise ConfigurationError(f"Fertilizer '{self.id}' has an unknown category {self.category!r}")
        if not math.isfinite(self.price) or self.price < 0:
            raise ConfigurationError(f"Fertilizer '{self.id}' price must be >= 0, got {self.price!r}")
        if not math.isfinite(self.bag_weight_lb) or self.bag_weight_lb <= 0:
            raise ConfigurationError(f"Fertilizer '{self.id}' bag weight must be > 0, got {self.bag_weight_lb!r}")
        composition = {}
        for nutrient, pct in self.composition.items():
            if not isinstance(nutrient, Nutrient):
                raise ConfigurationError(f"Fertilizer '{self.id}' has an unknown nutrient {nutrient!r}")
            if pct is None or not math.isfinite(pct) or not 0 <= pct <= 100:
                raise ConfigurationError(
                    f"Fertilizer '{self.id}' {nutrient.value} content must be within 0-100%, got {pct!r}"
                )
            composition[nutrient] = float(pct)
        object.__setattr__(self, "composition", composition)

    @property
    def bag_weight_kg(self) -> float:
        return self.bag_weight_lb * LB_TO_KG

    def content(self, nutrient: Nutrient) -> float:
        """Percentage content of ``nutrient``; 0 when the product lacks it."""
        return self.composition.get(nutrient, 0.0)

    def supplies(self, nutrient: Nutrient) -> bool:
        return self.content(nutrient) > 0


@dataclass(frozen=True)
class NutrientRequirement:
    """Soil supply vs crop demand for one nutrient.

    ``soil_supply``, ``crop_demand`` and ``deficit_per_ha`` are rounded for
    display; ``total_deficit`` keeps full precision for the optimizer.
    """
    nutrient: Nutrient
    name: str
    symbol: str
    soil_supply: float
    crop_demand: float
    deficit_per_ha: float
    total_deficit: float


@dataclass(frozen=True)
class AllocationLine:
    product: FertilizerProduct
    bags: int
    supplied: NutrientTotals
    cost: float

    @property
    def supplied_n(self) -> float:
        return self.supplied.n

    @property
    def supplied_p(self) -> float:
        return self.supplied.p

    @property
    def supplied_k(self) -> float:
        return self.supplied.k


@dataclass(frozen=True)
class FertilizationPlan:
    """A costed plan plus the deficits it started from and left behind."""
    name: str
    plan_type: PlanType
    lines: Tuple[AllocationLine, ...]
    total_bags: int
    total_cost: float
    total_nutrients: NutrientTotals
    required: NutrientTotals
    remaining: NutrientTotals

    def uncovered(self, threshold_kg: float = 0.0) -> Tuple[Nutrient, ...]:
        """Primary nutrients whose remaining deficit is still above ``threshold_kg``."""
        return tuple(n for n in PRIMARY_NUTRIENTS if self.remaining.get(n) > threshold_kg)


@dataclass(frozen=True)
class SoilCorrection:
    title: str
    description: str
    severity: Severity


@dataclass(frozen=True)
class PlanningResult:
    target: ProductionTarget
    area_ha: float
    yield_per_ha_tons: float
    requirements: Tuple[NutrientRequirement, ...]
    traditional: FertilizationPlan
    technological: FertilizationPlan
    soil_corrections: Tuple[SoilCorrection, ...]
    nitrogen_savings_pct: int

    def requirement(self, nutrient: Nutrient) -> NutrientRequirement:
        for requirement in self.requirements:
            if requirement.nutrient is nutrient:
                return requirement
        raise KeyError(nutrient.value)

    @property
    def plans(self) -> Tuple[FertilizationPlan, FertilizationPlan]:
        return (self.traditional, self.technological)
