"""
Tests for the document-analysis payload and planning schemas.
"""
import pytest
from pydantic import ValidationError

from fertiplan.schemas.fertilization_schemas import (
    FertilizerProductSchema,
    PlanningRequest,
    SoilAnalysisExtraction,
)
from fertiplan.services.fertilization_models import (
    AreaUnit,
    FertilizerCategory,
    Nutrient,
    SoilReading,
    YieldUnit,
)


EXTRACTED_PAYLOAD = {
    "ph": 5.4,
    "organicMatter": None,
    "nitrogen": None,
    "phosphorus": 12,
    "potassium": 0.25,
    "calcium": 4.1,
    "magnesium": None,
    "cationExchangeCapacity": 14.2,
    "texture": "Franco arcilloso",
    "crop": "Café",
    "otherData": ["Zinc: 1.2 ppm", "Boro: 0.4 ppm"],
}


class TestSoilAnalysisExtraction:

    def test_camel_case_payload(self):
        extraction = SoilAnalysisExtraction.model_validate(EXTRACTED_PAYLOAD)
        assert extraction.cation_exchange_capacity == pytest.approx(14.2)
        assert extraction.other_data == ["Zinc: 1.2 ppm", "Boro: 0.4 ppm"]

    def test_missing_values_become_zero(self):
        extraction = SoilAnalysisExtraction.model_validate(EXTRACTED_PAYLOAD)
        assert extraction.organic_matter == 0
        assert extraction.nitrogen == 0
        assert extraction.magnesium == 0

    def test_ph_required(self):
        payload = {k: v for k, v in EXTRACTED_PAYLOAD.items() if k != "ph"}
        with pytest.raises(ValidationError):
            SoilAnalysisExtraction.model_validate(payload)

    def test_null_other_data(self):
        extraction = SoilAnalysisExtraction.model_validate({
            "ph": 6.0, "phosphorus": 10, "potassium": 120, "otherData": None, "texture": None,
        })
        assert extraction.other_data == []
        assert extraction.texture == ""

    def test_to_reading(self):
        reading = SoilAnalysisExtraction.model_validate(EXTRACTED_PAYLOAD).to_reading()
        assert isinstance(reading, SoilReading)
        assert reading.ph == pytest.approx(5.4)
        assert reading.crop == "Café"
        assert reading.other_data == ("Zinc: 1.2 ppm", "Boro: 0.4 ppm")


class TestFertilizerProductSchema:

    def test_to_product_drops_zero_channels(self):
        schema = FertilizerProductSchema(
            id="17-6-18", name="Producción", category="specialized", price=48,
            n=17, p=6, k=18, s=4,
        )
        product = schema.to_product()
        assert product.category is FertilizerCategory.SPECIALIZED
        assert product.composition == {Nutrient.N: 17, Nutrient.P: 6, Nutrient.K: 18, Nutrient.S: 4}
        assert product.bag_weight_kg == pytest.approx(45.36)

    def test_macros_required(self):
        with pytest.raises(ValidationError):
            FertilizerProductSchema(id="x", name="X", category="commodity", price=10, n=10)


class TestPlanningRequest:

    def test_unit_defaults(self):
        request = PlanningRequest.model_validate({
            "soil": {"ph": 6.2, "phosphorus": 15, "potassium": 0.3},
            "target": {"crop": "maiz", "area": 2, "target_yield": 5},
        })
        target = request.target.to_target()
        assert target.area_unit is AreaUnit.HECTARE
        assert target.yield_unit is YieldUnit.TON

    def test_unknown_unit_rejected(self):
        with pytest.raises(ValidationError):
            PlanningRequest.model_validate({
                "soil": {"ph": 6.2, "phosphorus": 15, "potassium": 0.3},
                "target": {"crop": "maiz", "area": 2, "area_unit": "acre", "target_yield": 5},
            })

    def test_area_must_be_positive(self):
        with pytest.raises(ValidationError):
            PlanningRequest.model_validate({
                "soil": {"ph": 6.2, "phosphorus": 15, "potassium": 0.3},
                "target": {"crop": "maiz", "area": 0, "target_yield": 5},
            })

    def test_soil_accepts_extracted_payload(self):
        """The document-analysis payload is the request's soil block as-is."""
        request = PlanningRequest.model_validate({
            "soil": EXTRACTED_PAYLOAD,
            "target": {"crop": "cafe", "area": 3, "area_unit": "manzana", "target_yield": 30, "yield_unit": "quintal"},
        })
        reading = request.soil.to_reading()
        assert reading.organic_matter_pct == 0
        assert reading.cation_exchange_capacity == pytest.approx(14.2)
        assert reading.crop == "Café"

    def test_soil_requires_phosphorus_and_potassium(self):
        with pytest.raises(ValidationError):
            PlanningRequest.model_validate({
                "soil": {"ph": 6.2},
                "target": {"crop": "maiz", "area": 2, "target_yield": 5},
            })
