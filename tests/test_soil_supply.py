"""
Tests for the soil supply model.

1. N from a direct reading, or from organic matter when missing
2. P expressed as P2O5-equivalent
3. K readings under 10 treated as cmol/kg, then K2O-equivalent
4. Conversion factors are overridable
"""
import pytest

from fertiplan.services.fertilization_models import SoilReading
from fertiplan.services.soil_supply import (
    SoilConversionFactors,
    calculate_soil_supply,
    nitrogen_supply_kg_ha,
    phosphorus_supply_kg_ha,
    potassium_ppm,
    potassium_supply_kg_ha,
)


class TestNitrogenSupply:

    def test_direct_reading(self):
        soil = SoilReading(ph=6.2, nitrogen=20, organic_matter_pct=3)
        assert nitrogen_supply_kg_ha(soil) == pytest.approx(40.0)

    def test_organic_matter_fallback(self):
        """No N reading: 20 kg N/ha per % organic matter."""
        soil = SoilReading(ph=6.2, nitrogen=0, organic_matter_pct=3)
        assert nitrogen_supply_kg_ha(soil) == pytest.approx(60.0)

    def test_nothing_reported(self):
        assert nitrogen_supply_kg_ha(SoilReading(ph=6.2)) == 0.0


class TestPhosphorusSupply:

    def test_p2o5_equivalent(self):
        soil = SoilReading(ph=6.2, phosphorus=15)
        assert phosphorus_supply_kg_ha(soil) == pytest.approx(15 * 2 * 2.29)


class TestPotassiumSupply:

    def test_cmol_reading_converted(self):
        soil = SoilReading(ph=6.2, potassium=0.3)
        assert potassium_ppm(soil) == pytest.approx(117.3)
        assert potassium_supply_kg_ha(soil) == pytest.approx(117.3 * 2 * 1.20)

    def test_ppm_reading_kept(self):
        soil = SoilReading(ph=6.2, potassium=150)
        assert potassium_ppm(soil) == 150
        assert potassium_supply_kg_ha(soil) == pytest.approx(360.0)

    def test_zero_reading(self):
        assert potassium_supply_kg_ha(SoilReading(ph=6.2, potassium=0)) == 0.0


class TestCalculateSoilSupply:

    def test_all_nutrients(self):
        soil = SoilReading(ph=6.2, organic_matter_pct=3, nitrogen=20, phosphorus=15, potassium=0.3)
        supply = calculate_soil_supply(soil)
        assert supply.n == pytest.approx(40.0)
        assert supply.p == pytest.approx(68.7)
        assert supply.k == pytest.approx(281.52)

    def test_overridden_factors(self):
        """Deeper sampling: 30 cm at 1.3 g/cm3 gives ppm x 3.9."""
        factors = SoilConversionFactors(ppm_to_kg_ha=3.9)
        soil = SoilReading(ph=6.2, nitrogen=20)
        assert calculate_soil_supply(soil, factors).n == pytest.approx(78.0)
