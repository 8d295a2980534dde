"""
Fertilizer Mix Optimizer
Allocates whole bags from a fertilizer catalog to cover N, P2O5 and K2O
deficits at low cost. Runs once per plan policy to produce comparable plans.

STRATEGY (deterministic greedy heuristic, explainable rather than optimal):
  1. Bulk fill: if P or K is still material, buy the single product with the
     most useful nutrient per unit of price, sized to the larger of the
     outstanding P/K deficits.
  2. Cleanup K -> P -> N: cover what is left of each nutrient with its
     cheapest single source.

Each pass takes an immutable MixState and returns a new one; the passes are
folded in fixed order so no running deficit is shared between runs.

POLICIES:
  - Traditional: commodity products only, no nitrogen boost.
  - Technological: full catalog; N content of specialized products is
    multiplied by the nitrogen-efficiency boost before scoring and supply.
"""
from typing import Callable, List, Optional, Sequence, Tuple
from dataclasses import dataclass
from functools import reduce
import logging
import math

from fertiplan.services.fertilization_models import (
    AllocationLine,
    FertilizationPlan,
    FertilizerCategory,
    FertilizerProduct,
    Nutrient,
    NutrientTotals,
    PlanType,
    PRIMARY_NUTRIENTS,
)
from fertiplan.services.fertilization_rules import (
    BULK_FILL_THRESHOLD_KG,
    CLEANUP_THRESHOLD_KG,
)

logger = logging.getLogger(__name__)

CLEANUP_ORDER: Tuple[Nutrient, ...] = (Nutrient.K, Nutrient.P, Nutrient.N)


@dataclass(frozen=True)
class MixThresholds:
    """Materiality thresholds (kg) below which a deficit is left uncorrected."""
    bulk_fill_kg: float = BULK_FILL_THRESHOLD_KG
    cleanup_kg: float = CLEANUP_THRESHOLD_KG


DEFAULT_MIX_THRESHOLDS = MixThresholds()


def _any_product(product: FertilizerProduct) -> bool:
    return True


def _commodity_only(product: FertilizerProduct) -> bool:
    return product.category is FertilizerCategory.COMMODITY


@dataclass(frozen=True)
class PlanPolicy:
    """Catalog scope and nitrogen efficacy for one plan variant."""
    plan_type: PlanType
    name: str
    catalog_filter: Callable[[FertilizerProduct], bool]
    nitrogen_boost: float = 1.0
    boosted_category: FertilizerCategory = FertilizerCategory.SPECIALIZED

    def select(self, catalog: Sequence[FertilizerProduct]) -> Tuple[FertilizerProduct, ...]:
        return tuple(product for product in catalog if self.catalog_filter(product))

    def effective_content(self, product: FertilizerProduct, nutrient: Nutrient) -> float:
        content = product.content(nutrient)
        if nutrient is Nutrient.N and product.category is self.boosted_category:
            return content * self.nitrogen_boost
        return content

    def kg_per_bag(self, product: FertilizerProduct, nutrient: Nutrient) -> float:
        return product.bag_weight_kg * self.effective_content(product, nutrient) / 100


def traditional_policy() -> PlanPolicy:
    return PlanPolicy(
        plan_type=PlanType.TRADITIONAL,
        name="Propuesta Tradicional",
        catalog_filter=_commodity_only,
        nitrogen_boost=1.0,
    )


def technological_policy(nitrogen_boost: float) -> PlanPolicy:
    return PlanPolicy(
        plan_type=PlanType.TECHNOLOGICAL,
        name="Propuesta Tecnológica",
        catalog_filter=_any_product,
        nitrogen_boost=nitrogen_boost,
    )


@dataclass(frozen=True)
class MixState:
    """Running deficit and allocation lines after a pass."""
    remaining: NutrientTotals
    lines: Tuple[AllocationLine, ...] = ()


MixStep = Callable[[MixState], MixState]


def purchase(state: MixState, product: FertilizerProduct, bags: int, policy: PlanPolicy) -> MixState:
    """Add ``bags`` of ``product`` and subtract what they supply.

    Lines for the same product are merged. The remaining deficit may go
    negative when whole bags over-apply.
    """
    if bags <= 0:
        return state

    supplied = NutrientTotals(
        n=bags * policy.kg_per_bag(product, Nutrient.N),
        p=bags * policy.kg_per_bag(product, Nutrient.P),
        k=bags * policy.kg_per_bag(product, Nutrient.K),
    )
    cost = bags * product.price

    lines: List[AllocationLine] = list(state.lines)
    for index, line in enumerate(lines):
        if line.product.id == product.id:
            lines[index] = AllocationLine(
                product=line.product,
                bags=line.bags + bags,
                supplied=line.supplied + supplied,
                cost=line.cost + cost,
            )
            break
    else:
        lines.append(AllocationLine(product=product, bags=bags, supplied=supplied, cost=cost))

    return MixState(remaining=state.remaining - supplied, lines=tuple(lines))


def bulk_fill_score(
    product: FertilizerProduct,
    remaining: NutrientTotals,
    policy: PlanPolicy,
    threshold_kg: float
) -> float:
    """Useful nutrient kg per bag per unit of price.

    A nutrient counts only while its remaining deficit is material. Products
    without P or K, or without a positive price, score 0.
    """
    if product.price <= 0:
        return 0.0
    if not (product.supplies(Nutrient.P) or product.supplies(Nutrient.K)):
        return 0.0
    useful_kg = sum(
        policy.kg_per_bag(product, nutrient)
        for nutrient in PRIMARY_NUTRIENTS
        if remaining.get(nutrient) > threshold_kg
    )
    return useful_kg / product.price


def _bulk_fill_bags(product: FertilizerProduct, remaining: NutrientTotals, policy: PlanPolicy) -> int:
    if remaining.k > remaining.p and product.supplies(Nutrient.K):
        return math.ceil(remaining.k / policy.kg_per_bag(product, Nutrient.K))
    if remaining.p > 0 and product.supplies(Nutrient.P):
        return math.ceil(remaining.p / policy.kg_per_bag(product, Nutrient.P))
    return 0


def bulk_fill_step(catalog: Sequence[FertilizerProduct], policy: PlanPolicy, thresholds: MixThresholds) -> MixStep:
    def step(state: MixState) -> MixState:
        remaining = state.remaining
        limit = thresholds.bulk_fill_kg
        if remaining.p <= limit and remaining.k <= limit:
            return state

        best: Optional[FertilizerProduct] = None
        best_score = 0.0
        for product in catalog:
            score = bulk_fill_score(product, remaining, policy, limit)
            if score > best_score:
                best, best_score = product, score

        if best is None:
            logger.debug(f"[{policy.plan_type.value}] Bulk fill: no P/K source available")
            return state

        bags = _bulk_fill_bags(best, remaining, policy)
        logger.debug(f"[{policy.plan_type.value}] Bulk fill: {bags} bags of {best.id} (score {best_score:.4f})")
        return purchase(state, best, bags, policy)

    return step


def cheapest_source(
    nutrient: Nutrient,
    catalog: Sequence[FertilizerProduct],
    policy: PlanPolicy
) -> Optional[FertilizerProduct]:
    """Product with the lowest price per kg of ``nutrient``; first wins ties."""
    best: Optional[FertilizerProduct] = None
    best_cost = math.inf
    for product in catalog:
        kg_per_bag = policy.kg_per_bag(product, nutrient)
        if kg_per_bag <= 0 or product.price <= 0:
            continue
        cost_per_kg = product.price / kg_per_bag
        if cost_per_kg < best_cost:
            best, best_cost = product, cost_per_kg
    return best


def cleanup_step(
    nutrient: Nutrient,
    catalog: Sequence[FertilizerProduct],
    policy: PlanPolicy,
    thresholds: MixThresholds
) -> MixStep:
    def step(state: MixState) -> MixState:
        deficit = state.remaining.get(nutrient)
        if deficit <= thresholds.cleanup_kg:
            return state

        source = cheapest_source(nutrient, catalog, policy)
        if source is None:
            logger.debug(f"[{policy.plan_type.value}] Cleanup {nutrient.value}: no source, {deficit:.1f} kg left")
            return state

        bags = math.ceil(deficit / policy.kg_per_bag(source, nutrient))
        logger.debug(f"[{policy.plan_type.value}] Cleanup {nutrient.value}: {bags} bags of {source.id}")
        return purchase(state, source, bags, policy)

    return step


def run_mix(
    required: NutrientTotals,
    catalog: Sequence[FertilizerProduct],
    policy: PlanPolicy,
    thresholds: MixThresholds = DEFAULT_MIX_THRESHOLDS
) -> MixState:
    """Fold bulk fill and the K, P, N cleanup passes over the policy's catalog."""
    pool = policy.select(catalog)
    steps: List[MixStep] = [bulk_fill_step(pool, policy, thresholds)]
    steps.extend(cleanup_step(nutrient, pool, policy, thresholds) for nutrient in CLEANUP_ORDER)
    return reduce(lambda state, step: step(state), steps, MixState(remaining=required))


def optimize_fertilizer_mix(
    required: NutrientTotals,
    catalog: Sequence[FertilizerProduct],
    policy: PlanPolicy,
    thresholds: MixThresholds = DEFAULT_MIX_THRESHOLDS
) -> Tuple[AllocationLine, ...]:
    return run_mix(required, catalog, policy, thresholds).lines


def build_plan(
    required: NutrientTotals,
    catalog: Sequence[FertilizerProduct],
    policy: PlanPolicy,
    thresholds: MixThresholds = DEFAULT_MIX_THRESHOLDS
) -> FertilizationPlan:
    """Run the mix for ``policy`` and roll the lines up into a plan."""
    state = run_mix(required, catalog, policy, thresholds)
    lines = state.lines

    plan = FertilizationPlan(
        name=policy.name,
        plan_type=policy.plan_type,
        lines=lines,
        total_bags=sum(line.bags for line in lines),
        total_cost=sum((line.cost for line in lines), 0.0),
        total_nutrients=reduce(lambda total, line: total + line.supplied, lines, NutrientTotals()),
        required=required,
        remaining=state.remaining,
    )

    logger.info(
        f"{plan.name}: {len(lines)} products, {plan.total_bags} bags, cost {plan.total_cost:.2f}"
    )
    uncovered = plan.uncovered(thresholds.cleanup_kg)
    if uncovered:
        logger.info(f"{plan.name}: uncovered deficits for {', '.join(n.value for n in uncovered)}")
    return plan
