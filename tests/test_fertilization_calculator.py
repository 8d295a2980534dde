"""
Tests for the fertilization calculator.

Reference scenario: maize, 1 ha, 5 t/ha, N 20 ppm, P 15 ppm, K 0.3 cmol/kg,
pH 6.2, OM 3%.
  N: demand 125, effective soil 20, to apply 105 / 0.6 = 175 kg
  P2O5: demand 50, effective soil 20.61, to apply 29.39 / 0.3 = 97.97 kg
  K2O: demand 100, effective soil 168.9 -> no deficit
"""
import pytest

from fertiplan.services.fertilization_calculator import (
    FertilizationCalculator,
    calculate_fertilization,
    calculate_nutrient_requirement,
)
from fertiplan.services.fertilization_models import (
    AreaUnit,
    ConfigurationError,
    EfficiencyParameters,
    FertilizerCategory,
    FertilizerProduct,
    Nutrient,
    NutrientTotals,
    ProductionTarget,
    RemovalRate,
    RemovalRateTable,
    Severity,
    SoilReading,
    YieldUnit,
)
from fertiplan.services.fertilizer_mix_optimizer import MixThresholds
from fertiplan.services.agronomy_config import AgronomyConfigStore


@pytest.fixture
def config(tmp_path):
    return AgronomyConfigStore(data_dir=tmp_path).load()


@pytest.fixture
def soil():
    return SoilReading(ph=6.2, organic_matter_pct=3, nitrogen=20, phosphorus=15, potassium=0.3)


@pytest.fixture
def target():
    return ProductionTarget("maiz", 1, AreaUnit.HECTARE, 5, YieldUnit.TON)


@pytest.fixture
def result(soil, target, config):
    return calculate_fertilization(soil, target, config.removal_rates, config.fertilizers, config.parameters)


class TestNutrientRequirement:

    def test_deficit_balance(self):
        req = calculate_nutrient_requirement(Nutrient.N, 25, 40, 5, 1, 0.5, 0.6)
        assert req.crop_demand == 125
        assert req.soil_supply == 20
        assert req.deficit_per_ha == 175
        assert req.total_deficit == pytest.approx(175)
        assert (req.name, req.symbol) == ("Nitrógeno", "N")

    def test_surplus_is_zero(self):
        req = calculate_nutrient_requirement(Nutrient.K, 20, 10000, 5, 1, 0.6, 0.7)
        assert req.deficit_per_ha == 0
        assert req.total_deficit == 0

    def test_total_scales_with_area(self):
        one = calculate_nutrient_requirement(Nutrient.P, 10, 68.7, 5, 1, 0.3, 0.3)
        two = calculate_nutrient_requirement(Nutrient.P, 10, 68.7, 5, 2, 0.3, 0.3)
        assert two.total_deficit == pytest.approx(2 * one.total_deficit)
        assert one.deficit_per_ha == two.deficit_per_ha

    def test_total_keeps_full_precision(self):
        req = calculate_nutrient_requirement(Nutrient.P, 10, 68.7, 5, 1, 0.3, 0.3)
        assert req.deficit_per_ha == 98
        assert req.total_deficit == pytest.approx(97.9667, rel=1e-4)


class TestEfficiencyValidation:

    def test_zero_fertilizer_efficiency_rejected(self):
        with pytest.raises(ConfigurationError):
            EfficiencyParameters(fertilizer=NutrientTotals(n=0.6, p=0, k=0.7))

    def test_negative_soil_efficiency_rejected(self):
        with pytest.raises(ConfigurationError):
            EfficiencyParameters(soil=NutrientTotals(n=-0.1, p=0.3, k=0.6))

    def test_zero_boost_rejected(self):
        with pytest.raises(ConfigurationError):
            EfficiencyParameters(nitrogen_efficiency_boost=0)

    def test_zero_soil_efficiency_allowed(self):
        assert EfficiencyParameters(soil=NutrientTotals(0, 0, 0)).soil.n == 0


class TestCatalogValidation:

    def test_percentage_over_100_rejected(self):
        with pytest.raises(ConfigurationError):
            FertilizerProduct("bad", "Bad", FertilizerCategory.COMMODITY, 10, {Nutrient.N: 120})

    def test_negative_price_rejected(self):
        with pytest.raises(ConfigurationError):
            FertilizerProduct("bad", "Bad", FertilizerCategory.COMMODITY, -1, {Nutrient.N: 46})

    def test_removal_table_requires_default(self):
        with pytest.raises(ConfigurationError):
            RemovalRateTable(rates={"maiz": RemovalRate(25, 10, 20)})

    def test_case_colliding_crops_rejected(self):
        """'Maiz' and 'maiz' name the same crop; neither silently wins."""
        with pytest.raises(ConfigurationError):
            RemovalRateTable(rates={
                "Maiz": RemovalRate(25, 10, 20),
                "maiz": RemovalRate(30, 12, 22),
                "default": RemovalRate(20, 10, 20),
            })

    def test_negative_removal_rate_rejected(self):
        with pytest.raises(ConfigurationError):
            RemovalRate(-1, 10, 20)

    def test_unknown_crop_uses_default(self):
        table = RemovalRateTable(rates={"maiz": RemovalRate(25, 10, 20), "default": RemovalRate(20, 10, 20)})
        assert table.rate_for("sorgo") == RemovalRate(20, 10, 20)
        assert table.rate_for(" MAIZ ") == RemovalRate(25, 10, 20)


class TestCalculate:

    def test_requirements(self, result):
        n = result.requirement(Nutrient.N)
        p = result.requirement(Nutrient.P)
        k = result.requirement(Nutrient.K)
        assert (n.crop_demand, n.soil_supply, n.deficit_per_ha) == (125, 20, 175)
        assert (p.crop_demand, p.soil_supply, p.deficit_per_ha) == (50, 21, 98)
        assert (k.crop_demand, k.soil_supply, k.total_deficit) == (100, 169, 0)
        assert [r.symbol for r in result.requirements] == ["N", "P₂O₅", "K₂O"]

    def test_plans(self, result):
        traditional = {line.product.id: line.bags for line in result.traditional.lines}
        technological = {line.product.id: line.bags for line in result.technological.lines}
        assert traditional == {"18-46-0": 5, "urea": 7}
        assert technological == {"18-46-0": 5, "nitroxtend": 6}
        assert result.traditional.total_cost == pytest.approx(495)
        assert result.technological.total_cost == pytest.approx(490)

    def test_traditional_plan_is_commodity_only(self, result):
        assert all(
            line.product.category is FertilizerCategory.COMMODITY
            for line in result.traditional.lines
        )

    def test_plan_totals_are_non_negative(self, result):
        for plan in result.plans:
            assert plan.total_bags >= 0
            assert plan.total_cost >= 0
            assert all(line.bags > 0 for line in plan.lines)

    def test_soil_corrections_and_savings(self, result):
        assert [c.severity for c in result.soil_corrections] == [Severity.SUCCESS]
        assert result.nitrogen_savings_pct == 21

    def test_area_and_yield(self, result):
        assert result.area_ha == pytest.approx(1.0)
        assert result.yield_per_ha_tons == pytest.approx(5.0)

    def test_idempotent(self, soil, target, config):
        first = calculate_fertilization(soil, target, config.removal_rates, config.fertilizers, config.parameters)
        second = calculate_fertilization(soil, target, config.removal_rates, config.fertilizers, config.parameters)
        assert first == second

    def test_default_efficiency(self, soil, target, config, result):
        calculator = FertilizationCalculator()
        assert calculator.calculate(soil, target, config.removal_rates, config.fertilizers) == result

    def test_manzana_area(self, soil, config):
        target = ProductionTarget("maiz", 10, AreaUnit.MANZANA, 5, YieldUnit.TON)
        result = calculate_fertilization(soil, target, config.removal_rates, config.fertilizers)
        assert result.area_ha == pytest.approx(7.0)
        # 5 t per manzana is 7.14 t/ha
        assert result.yield_per_ha_tons == pytest.approx(5 / 0.7)

    def test_surplus_soil_buys_nothing(self, target, config):
        rich = SoilReading(ph=6.5, organic_matter_pct=5, nitrogen=200, phosphorus=200, potassium=500)
        result = calculate_fertilization(rich, target, config.removal_rates, config.fertilizers)
        assert all(r.total_deficit == 0 for r in result.requirements)
        assert result.traditional.lines == ()
        assert result.technological.total_cost == 0

    def test_custom_thresholds(self, soil, target, config):
        calculator = FertilizationCalculator(mix_thresholds=MixThresholds(bulk_fill_kg=500, cleanup_kg=500))
        result = calculator.calculate(soil, target, config.removal_rates, config.fertilizers)
        assert result.traditional.lines == ()
        assert result.traditional.uncovered() == (Nutrient.N, Nutrient.P)
