"""
Pydantic schemas for the Fertilization Planning module.
Includes the document-analysis payload, configuration files and the
planning request/response.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict

from fertiplan.services.fertilization_models import (
    AllocationLine,
    AreaUnit,
    EfficiencyParameters,
    FertilizationPlan,
    FertilizerCategory,
    FertilizerProduct,
    Nutrient,
    NutrientRequirement,
    NutrientTotals,
    PlanningResult,
    ProductionTarget,
    RemovalRate,
    Severity,
    SoilCorrection,
    SoilReading,
    YieldUnit,
)
from fertiplan.services.fertilization_rules import (
    DEFAULT_BAG_WEIGHT_LB,
    DEFAULT_FERTILIZER_EFFICIENCY,
    DEFAULT_NITROGEN_EFFICIENCY_BOOST,
    DEFAULT_SOIL_EFFICIENCY,
)


# ==================== DOCUMENT ANALYSIS PAYLOAD ====================

class SoilAnalysisExtraction(BaseModel):
    """
    Soil values returned by the AI document-analysis service.

    pH, phosphorus and potassium are required; every other numeric value
    the service could not find is reported as (or defaults to) 0.
    """
    ph: float = Field(..., ge=0, le=14, description="Soil pH")
    organic_matter: float = Field(default=0.0, ge=0, le=100, alias="organicMatter", description="Organic matter %")
    nitrogen: float = Field(default=0.0, ge=0, description="Nitrogen ppm")
    phosphorus: float = Field(..., ge=0, description="Phosphorus ppm")
    potassium: float = Field(..., ge=0, description="Potassium cmol/kg or ppm")
    calcium: float = Field(default=0.0, ge=0, description="Calcium cmol/kg")
    magnesium: float = Field(default=0.0, ge=0, description="Magnesium cmol/kg")
    cation_exchange_capacity: float = Field(default=0.0, ge=0, alias="cationExchangeCapacity", description="CEC")
    texture: str = Field(default="", description="Textural class")
    crop: Optional[str] = Field(None, description="Crop mentioned in the report")
    other_data: List[str] = Field(default_factory=list, alias="otherData", description="'Name: Value Unit' entries")

    class Config:
        populate_by_name = True

    @field_validator(
        "organic_matter", "nitrogen", "calcium", "magnesium", "cation_exchange_capacity",
        mode="before",
    )
    @classmethod
    def _missing_as_zero(cls, value):
        return 0.0 if value is None else value

    @field_validator("texture", mode="before")
    @classmethod
    def _missing_texture(cls, value):
        return "" if value is None else value

    @field_validator("other_data", mode="before")
    @classmethod
    def _missing_other_data(cls, value):
        return [] if value is None else value

    def to_reading(self) -> SoilReading:
        return SoilReading(
            ph=self.ph,
            organic_matter_pct=self.organic_matter,
            nitrogen=self.nitrogen,
            phosphorus=self.phosphorus,
            potassium=self.potassium,
            calcium=self.calcium,
            magnesium=self.magnesium,
            cation_exchange_capacity=self.cation_exchange_capacity,
            texture=self.texture,
            crop=self.crop,
            other_data=tuple(self.other_data),
        )


# ==================== CONFIGURATION SCHEMAS ====================

class FertilizerProductSchema(BaseModel):
    """Fertilizer catalog entry (percentages by weight, price per bag)."""
    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    category: FertilizerCategory
    price: float = Field(ge=0, description="Price per bag")
    bag_weight_lb: float = Field(default=DEFAULT_BAG_WEIGHT_LB, gt=0, description="Bag weight in lb")

    # Macros
    n: float = Field(ge=0, le=100, description="N %")
    p: float = Field(ge=0, le=100, description="P2O5 %")
    k: float = Field(ge=0, le=100, description="K2O %")

    # Secondary
    s: float = Field(default=0.0, ge=0, le=100)
    ca: float = Field(default=0.0, ge=0, le=100)
    mg: float = Field(default=0.0, ge=0, le=100)

    # Micros
    zn: float = Field(default=0.0, ge=0, le=100)
    b: float = Field(default=0.0, ge=0, le=100)
    fe: float = Field(default=0.0, ge=0, le=100)
    mn: float = Field(default=0.0, ge=0, le=100)
    cu: float = Field(default=0.0, ge=0, le=100)

    def to_product(self) -> FertilizerProduct:
        contents = {
            Nutrient.N: self.n,
            Nutrient.P: self.p,
            Nutrient.K: self.k,
            Nutrient.S: self.s,
            Nutrient.CA: self.ca,
            Nutrient.MG: self.mg,
            Nutrient.ZN: self.zn,
            Nutrient.B: self.b,
            Nutrient.FE: self.fe,
            Nutrient.MN: self.mn,
            Nutrient.CU: self.cu,
        }
        return FertilizerProduct(
            id=self.id,
            name=self.name,
            category=self.category,
            price=self.price,
            bag_weight_lb=self.bag_weight_lb,
            composition={nutrient: pct for nutrient, pct in contents.items() if pct > 0},
        )

    @classmethod
    def from_product(cls, product: FertilizerProduct) -> "FertilizerProductSchema":
        return cls(
            id=product.id,
            name=product.name,
            category=product.category,
            price=product.price,
            bag_weight_lb=product.bag_weight_lb,
            n=product.content(Nutrient.N),
            p=product.content(Nutrient.P),
            k=product.content(Nutrient.K),
            s=product.content(Nutrient.S),
            ca=product.content(Nutrient.CA),
            mg=product.content(Nutrient.MG),
            zn=product.content(Nutrient.ZN),
            b=product.content(Nutrient.B),
            fe=product.content(Nutrient.FE),
            mn=product.content(Nutrient.MN),
            cu=product.content(Nutrient.CU),
        )


class FertilizerCatalogFile(BaseModel):
    fertilizers: List[FertilizerProductSchema]


class RemovalRateSchema(BaseModel):
    """kg of nutrient removed per ton of harvested yield."""
    n: float = Field(ge=0)
    p: float = Field(ge=0, description="P2O5")
    k: float = Field(ge=0, description="K2O")

    def to_rate(self) -> RemovalRate:
        return RemovalRate(n=self.n, p=self.p, k=self.k)


class RemovalRatesFile(BaseModel):
    crops: Dict[str, RemovalRateSchema]


class NutrientFactorsSchema(BaseModel):
    n: float = Field(ge=0)
    p: float = Field(ge=0)
    k: float = Field(ge=0)

    def to_totals(self) -> NutrientTotals:
        return NutrientTotals(n=self.n, p=self.p, k=self.k)


class AgronomyParametersSchema(BaseModel):
    """Global efficiency parameters."""
    nitrogen_efficiency_boost: float = Field(default=DEFAULT_NITROGEN_EFFICIENCY_BOOST, gt=0)
    soil_efficiency: NutrientFactorsSchema = Field(
        default_factory=lambda: NutrientFactorsSchema(**DEFAULT_SOIL_EFFICIENCY)
    )
    fertilizer_efficiency: NutrientFactorsSchema = Field(
        default_factory=lambda: NutrientFactorsSchema(**DEFAULT_FERTILIZER_EFFICIENCY)
    )

    def to_parameters(self) -> EfficiencyParameters:
        return EfficiencyParameters(
            soil=self.soil_efficiency.to_totals(),
            fertilizer=self.fertilizer_efficiency.to_totals(),
            nitrogen_efficiency_boost=self.nitrogen_efficiency_boost,
        )

    @classmethod
    def from_parameters(cls, params: EfficiencyParameters) -> "AgronomyParametersSchema":
        return cls(
            nitrogen_efficiency_boost=params.nitrogen_efficiency_boost,
            soil_efficiency=NutrientFactorsSchema(n=params.soil.n, p=params.soil.p, k=params.soil.k),
            fertilizer_efficiency=NutrientFactorsSchema(
                n=params.fertilizer.n, p=params.fertilizer.p, k=params.fertilizer.k
            ),
        )


# ==================== PLANNING REQUEST ====================

class ProductionTargetSchema(BaseModel):
    """Crop and production goal. Yield is per one unit of area_unit."""
    crop: str = Field(..., min_length=1, max_length=100)
    area: float = Field(..., gt=0, description="Area size")
    area_unit: AreaUnit = Field(default=AreaUnit.HECTARE)
    target_yield: float = Field(..., ge=0, description="Expected yield per area unit")
    yield_unit: YieldUnit = Field(default=YieldUnit.TON)

    def to_target(self) -> ProductionTarget:
        return ProductionTarget(
            crop=self.crop,
            area=self.area,
            area_unit=self.area_unit,
            target_yield=self.target_yield,
            yield_unit=self.yield_unit,
        )

    @classmethod
    def from_target(cls, target: ProductionTarget) -> "ProductionTargetSchema":
        return cls(
            crop=target.crop,
            area=target.area,
            area_unit=target.area_unit,
            target_yield=target.target_yield,
            yield_unit=target.yield_unit,
        )


class PlanningRequest(BaseModel):
    """Confirmed document-analysis payload plus the production target."""
    soil: SoilAnalysisExtraction
    target: ProductionTargetSchema


# ==================== PLANNING RESPONSE ====================

class NutrientRequirementResponse(BaseModel):
    nutrient: str
    symbol: str
    soil_supply: float = Field(description="Effective soil supply kg/ha")
    crop_demand: float = Field(description="Crop demand kg/ha")
    deficit_per_ha: float = Field(description="Fertilizer nutrient to apply kg/ha")
    total_deficit: float = Field(description="Total kg for the whole area")

    @classmethod
    def from_requirement(cls, requirement: NutrientRequirement) -> "NutrientRequirementResponse":
        return cls(
            nutrient=requirement.name,
            symbol=requirement.symbol,
            soil_supply=requirement.soil_supply,
            crop_demand=requirement.crop_demand,
            deficit_per_ha=requirement.deficit_per_ha,
            total_deficit=requirement.total_deficit,
        )


class AllocationLineResponse(BaseModel):
    fertilizer_id: str
    fertilizer_name: str
    category: FertilizerCategory
    bags: int
    supplied_n: float
    supplied_p: float
    supplied_k: float
    cost: float

    @classmethod
    def from_line(cls, line: AllocationLine) -> "AllocationLineResponse":
        return cls(
            fertilizer_id=line.product.id,
            fertilizer_name=line.product.name,
            category=line.product.category,
            bags=line.bags,
            supplied_n=line.supplied_n,
            supplied_p=line.supplied_p,
            supplied_k=line.supplied_k,
            cost=line.cost,
        )


def _totals_dict(totals: NutrientTotals) -> Dict[str, float]:
    return {"n": totals.n, "p": totals.p, "k": totals.k}


class FertilizationPlanResponse(BaseModel):
    name: str
    plan_type: str
    items: List[AllocationLineResponse]
    total_bags: int
    total_cost: float
    total_nutrients: Dict[str, float]
    remaining_deficit: Dict[str, float] = Field(
        description="Deficit left after whole-bag allocation (negative = over-application)"
    )

    @classmethod
    def from_plan(cls, plan: FertilizationPlan) -> "FertilizationPlanResponse":
        return cls(
            name=plan.name,
            plan_type=plan.plan_type.value,
            items=[AllocationLineResponse.from_line(line) for line in plan.lines],
            total_bags=plan.total_bags,
            total_cost=plan.total_cost,
            total_nutrients=_totals_dict(plan.total_nutrients),
            remaining_deficit=_totals_dict(plan.remaining),
        )


class SoilCorrectionResponse(BaseModel):
    title: str
    description: str
    type: Severity

    @classmethod
    def from_correction(cls, correction: SoilCorrection) -> "SoilCorrectionResponse":
        return cls(title=correction.title, description=correction.description, type=correction.severity)


class PlanningResponse(BaseModel):
    """Response schema for a fertilization planning run."""
    target: ProductionTargetSchema
    area_ha: float
    yield_per_ha_tons: float
    nutrients: List[NutrientRequirementResponse]
    plans: Dict[str, FertilizationPlanResponse]
    soil_corrections: List[SoilCorrectionResponse]
    nitrogen_savings_pct: int

    @classmethod
    def from_result(cls, result: PlanningResult) -> "PlanningResponse":
        return cls(
            target=ProductionTargetSchema.from_target(result.target),
            area_ha=result.area_ha,
            yield_per_ha_tons=result.yield_per_ha_tons,
            nutrients=[NutrientRequirementResponse.from_requirement(r) for r in result.requirements],
            plans={plan.plan_type.value: FertilizationPlanResponse.from_plan(plan) for plan in result.plans},
            soil_corrections=[SoilCorrectionResponse.from_correction(c) for c in result.soil_corrections],
            nitrogen_savings_pct=result.nitrogen_savings_pct,
        )


class CropRemovalRateResponse(BaseModel):
    crop: str
    n: float
    p: float
    k: float


class FertilizerListResponse(BaseModel):
    items: List[FertilizerProductSchema]
    total: int
