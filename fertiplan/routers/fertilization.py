"""
Fertilization Planning Router.
Provides endpoints for fertilization plans and the agronomy configuration.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from fertiplan.schemas.fertilization_schemas import (
    AgronomyParametersSchema,
    CropRemovalRateResponse,
    FertilizerListResponse,
    FertilizerProductSchema,
    PlanningRequest,
    PlanningResponse,
)
from fertiplan.services.agronomy_config import AgronomyConfig, get_agronomy_config
from fertiplan.services.fertilization_calculator import fertilization_calculator
from fertiplan.services.fertilization_models import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fertilization", tags=["fertilization"])


def get_planning_config() -> AgronomyConfig:
    try:
        return get_agronomy_config()
    except ConfigurationError as e:
        logger.error(f"Agronomy configuration unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="La configuración agronómica es inválida"
        )


@router.post("/calculate", response_model=PlanningResponse)
async def calculate_fertilization_plan(
    request: PlanningRequest,
    config: AgronomyConfig = Depends(get_planning_config)
):
    """
    Calculate nutrient requirements and the traditional / technological
    fertilizer plans for a confirmed soil analysis and production target.
    """
    try:
        result = fertilization_calculator.calculate(
            soil=request.soil.to_reading(),
            target=request.target.to_target(),
            removal_rates=config.removal_rates,
            catalog=config.fertilizers,
            efficiency=config.parameters,
        )
    except ConfigurationError as e:
        logger.warning(f"Rejected planning request: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return PlanningResponse.from_result(result)


@router.get("/crops", response_model=List[CropRemovalRateResponse])
async def list_crop_removal_rates(config: AgronomyConfig = Depends(get_planning_config)):
    """Crop removal rates (kg per ton of yield), including the default entry."""
    return [
        CropRemovalRateResponse(crop=crop, n=rate.n, p=rate.p, k=rate.k)
        for crop, rate in config.removal_rates.rates.items()
    ]


@router.get("/fertilizers", response_model=FertilizerListResponse)
async def list_fertilizers(config: AgronomyConfig = Depends(get_planning_config)):
    items = [FertilizerProductSchema.from_product(f) for f in config.fertilizers]
    return FertilizerListResponse(items=items, total=len(items))


@router.get("/parameters", response_model=AgronomyParametersSchema)
async def get_agronomy_parameters(config: AgronomyConfig = Depends(get_planning_config)):
    return AgronomyParametersSchema.from_parameters(config.parameters)
