"""
Deterministic agronomic rules and thresholds for fertilization planning.

This module centralizes constants so the calculator, the mix optimizer and
the soil advisory stay deterministic, auditable, and consistent across
services and tests. Values are regional averages and should be validated
by a local agronomist before field use.
"""

# Area / yield conversions
MANZANA_TO_HECTARE = 0.7
LB_TO_KG = 0.4536
QUINTAL_TO_KG = 45.36  # 100 lb
TON_TO_KG = 1000.0

DEFAULT_BAG_WEIGHT_LB = 100.0

# Soil conversions (20 cm depth, bulk density 1.0)
PPM_TO_KG_HA = 2.0
OM_NITROGEN_KG_HA_PER_PCT = 20.0
P_TO_P2O5 = 2.29
K_TO_K2O = 1.20
CMOL_K_TO_PPM = 391.0
K_CMOL_READING_LIMIT = 10.0

# Efficiency defaults
DEFAULT_SOIL_EFFICIENCY = {"n": 0.5, "p": 0.3, "k": 0.6}
DEFAULT_FERTILIZER_EFFICIENCY = {"n": 0.6, "p": 0.3, "k": 0.7}
DEFAULT_NITROGEN_EFFICIENCY_BOOST = 1.21

# Mix optimizer materiality (kg)
BULK_FILL_THRESHOLD_KG = 10.0
CLEANUP_THRESHOLD_KG = 5.0

# Soil correction bands
PH_STRONG_ACIDITY_LIMIT = 5.5
PH_MODERATE_ACIDITY_LIMIT = 6.0
PH_ALKALINE_LIMIT = 7.5
LOW_ORGANIC_MATTER_PCT = 2.0
