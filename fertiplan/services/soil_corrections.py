"""
Soil correction advisories derived from pH and organic matter.

Independent of the mix optimizer: always exactly one pH advisory, plus an
organic matter warning when it is low.
"""
from typing import List, Tuple

from fertiplan.services.fertilization_models import Severity, SoilCorrection, SoilReading
from fertiplan.services.fertilization_rules import (
    LOW_ORGANIC_MATTER_PCT,
    PH_ALKALINE_LIMIT,
    PH_MODERATE_ACIDITY_LIMIT,
    PH_STRONG_ACIDITY_LIMIT,
)

ACIDITY_CORRECTION_TITLE = "Corrección de Acidez Necesaria"
MODERATE_ACIDITY_TITLE = "Acidez Moderada"
ALKALINE_SOIL_TITLE = "Suelo Alcalino"
OPTIMAL_PH_TITLE = "pH Óptimo"
LOW_ORGANIC_MATTER_TITLE = "Materia Orgánica Baja"


def ph_correction(ph: float) -> SoilCorrection:
    if ph < PH_STRONG_ACIDITY_LIMIT:
        return SoilCorrection(
            title=ACIDITY_CORRECTION_TITLE,
            description=(
                f"El pH de {ph} es fuertemente ácido. Esto bloquea la disponibilidad de fertilizantes. "
                "Se recomienda aplicar CAL AGRÍCOLA o DOLOMITA al menos 30 días antes de la siembra."
            ),
            severity=Severity.WARNING,
        )
    if ph < PH_MODERATE_ACIDITY_LIMIT:
        return SoilCorrection(
            title=MODERATE_ACIDITY_TITLE,
            description=(
                f"El pH de {ph} es moderadamente ácido. Considere una aplicación de mantenimiento "
                "de cal para optimizar la absorción de nutrientes."
            ),
            severity=Severity.INFO,
        )
    if ph > PH_ALKALINE_LIMIT:
        return SoilCorrection(
            title=ALKALINE_SOIL_TITLE,
            description=(
                "Posible bloqueo de micronutrientes (Hierro, Zinc). Evite encalar. "
                "Prefiera fertilizantes de reacción ácida."
            ),
            severity=Severity.WARNING,
        )
    return SoilCorrection(
        title=OPTIMAL_PH_TITLE,
        description=f"El pH de {ph} es ideal para la mayoría de cultivos. La eficiencia de los fertilizantes será alta.",
        severity=Severity.SUCCESS,
    )


def build_soil_corrections(soil: SoilReading) -> Tuple[SoilCorrection, ...]:
    corrections: List[SoilCorrection] = [ph_correction(soil.ph)]

    if (soil.organic_matter_pct or 0.0) < LOW_ORGANIC_MATTER_PCT:
        corrections.append(SoilCorrection(
            title=LOW_ORGANIC_MATTER_TITLE,
            description=(
                f"El nivel de M.O. es bajo (< {LOW_ORGANIC_MATTER_PCT:g}%). "
                "Se recomienda incorporar abono orgánico para mejorar retención."
            ),
            severity=Severity.WARNING,
        ))

    return tuple(corrections)
