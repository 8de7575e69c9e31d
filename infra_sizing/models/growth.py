"""Year over year growth forecast of a sized deployment.

The baseline is the sizing as-is (year 0). Every tracked metric is then
grown from the previous year's unrounded value with the same growth factor,
cost additionally compounds inflation. Projected points are rounded up to
whole units for reporting only.
"""

import logging
import math
from functools import reduce
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

import numpy as np
from scipy.special import expit

from infra_sizing.errors import InvalidInput
from infra_sizing.interface import CapacityWarning
from infra_sizing.interface import ClusterSizingResult
from infra_sizing.interface import CostEstimate
from infra_sizing.interface import Distribution
from infra_sizing.interface import Environment
from infra_sizing.interface import EnvironmentProjection
from infra_sizing.interface import GrowthPattern
from infra_sizing.interface import GrowthProjection
from infra_sizing.interface import GrowthSettings
from infra_sizing.interface import ProjectionPoint
from infra_sizing.interface import ProjectionSummary
from infra_sizing.interface import RecommendationType
from infra_sizing.interface import ScalingRecommendation
from infra_sizing.interface import TopologyLimits
from infra_sizing.interface import VMSizingResult
from infra_sizing.interface import WarningSeverity
from infra_sizing.models.common import percent_change

logger = logging.getLogger(__name__)

S_CURVE_MIDPOINT = 2.5
S_CURVE_STEEPNESS = 1.5

WARNING_PERCENT = 70
CRITICAL_PERCENT = 90
YEAR_TO_LIMIT_HORIZON = 10

AUTOSCALING_GROWTH_PERCENT = 100
LARGER_NODES_GROWTH_PERCENT = 50
OPTIMIZE_COST_INCREASE_PERCENT = 75
OPTIMIZATION_SAVINGS = 0.15

# Node counts past which a lightweight distribution is outgrown
LIGHTWEIGHT_NODE_CEILINGS = {
    Distribution.k3s: 200,
    Distribution.microk8s: 100,
}

# Column order of the tracked metric vector
APPS, NODES, WORKERS, CPU, RAM, STORAGE, COST = range(7)
# Column order of each environment's row
ENV_APPS, ENV_NODES, ENV_CPU, ENV_RAM, ENV_COST = range(5)


def s_curve_weight(year: int) -> float:
    """Slope of the logistic adoption curve at ``year``, 1 at the midpoint"""
    adoption = float(expit(S_CURVE_STEEPNESS * (year - S_CURVE_MIDPOINT)))
    return 4 * adoption * (1 - adoption)


def growth_factor(rate_percent: float, year: int, pattern: GrowthPattern) -> float:
    """Multiplier taking a value from ``year - 1`` to ``year``

    Linear, exponential and custom growth all compound the year's rate once
    per year. The S-curve weights the rate by how fast adoption moves that
    year: slow at first, fastest around year three, then tailing off. The
    doubled weight averages out to roughly the annual rate over five years.
    """
    rate = rate_percent / 100
    if pattern == GrowthPattern.s_curve:
        return 1 + rate * 2 * s_curve_weight(year)
    return 1 + rate


def apply_growth(
    value: Union[float, np.ndarray],
    rate_percent: float,
    year: int,
    pattern: GrowthPattern,
) -> Union[float, np.ndarray]:
    return value * growth_factor(rate_percent, year, pattern)


def year_to_limit(
    current: float,
    limit: float,
    rate_percent: float,
    pattern: GrowthPattern = GrowthPattern.linear,
) -> Optional[int]:
    """First year ``current`` reaches ``limit``, ``None`` if not within 10 years"""
    if current >= limit:
        return 0
    if rate_percent <= 0:
        return None
    value = float(current)
    for year in range(1, YEAR_TO_LIMIT_HORIZON + 1):
        value = apply_growth(value, rate_percent, year, pattern)
        if value >= limit:
            return year
    return None


def _env_costs(cost: Optional[CostEstimate], environment: Environment) -> float:
    if cost is None:
        return 0.0
    env_cost = cost.environment_cost(environment)
    return env_cost.monthly_cost if env_cost is not None else 0.0


def _ceil(value: float) -> int:
    return int(math.ceil(value))


def _environment_projections(
    environments: Sequence[Environment], rows: np.ndarray
) -> List[EnvironmentProjection]:
    return [
        EnvironmentProjection(
            environment=env,
            apps=_ceil(row[ENV_APPS]),
            nodes=_ceil(row[ENV_NODES]),
            cpu=_ceil(row[ENV_CPU]),
            ram=_ceil(row[ENV_RAM]),
            monthly_cost=float(row[ENV_COST]),
        )
        for env, row in zip(environments, rows)
    ]


def _grow_points(
    metrics: np.ndarray,
    environments: Sequence[Environment],
    env_rows: np.ndarray,
    settings: GrowthSettings,
) -> List[ProjectionPoint]:
    """Baseline point followed by one grown point per projected year"""
    baseline = ProjectionPoint(
        year=0,
        label="Current",
        apps=int(metrics[APPS]),
        nodes=int(metrics[NODES]),
        workers=int(metrics[WORKERS]),
        cpu=int(metrics[CPU]),
        ram=int(metrics[RAM]),
        storage=int(metrics[STORAGE]),
        monthly_cost=float(metrics[COST]),
        environments=_environment_projections(environments, env_rows),
    )
    points = [baseline]
    inflation = 1 + settings.annual_cost_inflation / 100
    base_apps = metrics[APPS]
    current = metrics.astype(float)
    current_envs = env_rows.astype(float)

    for year in range(1, settings.projection_years + 1):
        rate = settings.rate_for_year(year)
        grown = apply_growth(current, rate, year, settings.pattern)
        grown_envs = apply_growth(current_envs, rate, year, settings.pattern)
        if settings.include_cost_projections:
            grown[COST] *= inflation
            grown_envs[:, ENV_COST] *= inflation
        else:
            grown[COST] = 0.0
            grown_envs[:, ENV_COST] = 0.0

        points.append(
            ProjectionPoint(
                year=year,
                label=f"Year {year}",
                apps=_ceil(grown[APPS]),
                nodes=_ceil(grown[NODES]),
                workers=_ceil(grown[WORKERS]),
                cpu=_ceil(grown[CPU]),
                ram=_ceil(grown[RAM]),
                storage=_ceil(grown[STORAGE]),
                monthly_cost=float(grown[COST]),
                growth_from_previous=percent_change(grown[APPS], current[APPS]),
                cumulative_growth=percent_change(grown[APPS], base_apps),
                environments=_environment_projections(environments, grown_envs),
            )
        )
        current, current_envs = grown, grown_envs
    return points


def _limit_candidate(
    point: ProjectionPoint, baseline_nodes: int, max_nodes: int
) -> Optional[CapacityWarning]:
    percent = point.nodes / max_nodes * 100
    if percent >= CRITICAL_PERCENT:
        severity = WarningSeverity.critical
    elif percent >= WARNING_PERCENT:
        severity = WarningSeverity.warning
    else:
        return None
    return CapacityWarning(
        severity=severity,
        year=point.year,
        message=(
            f"Node count ({point.nodes}) will reach {percent:.0f}% of cluster "
            f"limit ({max_nodes}) by Year {point.year}"
        ),
        current_value=baseline_nodes,
        projected_value=point.nodes,
        limit=max_nodes,
        percent_of_limit=percent,
    )


def _keep_first(
    kept: List[CapacityWarning], candidate: CapacityWarning
) -> List[CapacityWarning]:
    # A critical is kept unless one was already kept, a plain warning only
    # while nothing at all has been kept.
    if candidate.severity == WarningSeverity.critical:
        if any(w.severity == WarningSeverity.critical for w in kept):
            return kept
        return kept + [candidate]
    return kept if kept else [candidate]


def reduce_warnings(candidates: Sequence[CapacityWarning]) -> List[CapacityWarning]:
    """First occurrence wins over year ordered candidates"""
    ordered = sorted(candidates, key=lambda w: w.year)
    return reduce(_keep_first, ordered, [])


def limit_warnings(
    points: Sequence[ProjectionPoint], limits: TopologyLimits
) -> List[CapacityWarning]:
    baseline_nodes = points[0].nodes
    candidates = [
        warning
        for warning in (
            _limit_candidate(p, baseline_nodes, limits.max_nodes) for p in points[1:]
        )
        if warning is not None
    ]
    warnings = reduce_warnings(candidates)
    for warning in warnings:
        logger.warning(warning.message)
    return warnings


def summarize(
    points: Sequence[ProjectionPoint], warnings: Sequence[CapacityWarning]
) -> ProjectionSummary:
    baseline, final = points[0], points[-1]
    projected = points[1:]
    criticals = [w for w in warnings if w.severity == WarningSeverity.critical]
    if projected:
        average_yearly = float(np.mean([p.yearly_cost for p in projected]))
    else:
        average_yearly = baseline.yearly_cost
    return ProjectionSummary(
        app_growth=final.apps - baseline.apps,
        app_growth_percent=percent_change(final.apps, baseline.apps),
        node_growth=final.nodes - baseline.nodes,
        node_growth_percent=percent_change(final.nodes, baseline.nodes),
        total_cost_over_period=baseline.yearly_cost
        + sum(p.yearly_cost for p in projected),
        average_yearly_cost=average_yearly,
        cost_increase=final.yearly_cost - baseline.yearly_cost,
        cost_increase_percent=percent_change(final.yearly_cost, baseline.yearly_cost),
        major_scaling_year=min((w.year for w in criticals), default=None),
        warning_count=len(warnings),
        critical_warning_count=len(criticals),
    )


def recommendations(
    points: Sequence[ProjectionPoint],
    warnings: Sequence[CapacityWarning],
    summary: ProjectionSummary,
    settings: GrowthSettings,
    distribution: Optional[Distribution] = None,
) -> List[ScalingRecommendation]:
    """Heuristic advice from the final point, the warnings and the summary"""
    final = points[-1]
    advice: List[ScalingRecommendation] = []

    if final.cumulative_growth > AUTOSCALING_GROWTH_PERCENT:
        advice.append(
            ScalingRecommendation(
                type=RecommendationType.enable_autoscaling,
                year=1,
                priority=1,
                title="Enable Cluster Autoscaling",
                description=(
                    f"With {final.cumulative_growth:.0f}% projected growth, "
                    "autoscaling absorbs load changes without manual resizing."
                ),
            )
        )

    if summary.node_growth_percent > LARGER_NODES_GROWTH_PERCENT:
        advice.append(
            ScalingRecommendation(
                type=RecommendationType.upgrade_node_size,
                year=max(1, settings.projection_years // 2),
                priority=2,
                title="Consider Larger Node Sizes",
                description=(
                    f"Node count grows by {summary.node_growth_percent:.0f}%. "
                    "Fewer, larger nodes may cost less than many small ones."
                ),
            )
        )

    criticals = [w for w in warnings if w.severity == WarningSeverity.critical]
    if criticals:
        first = min(w.year for w in criticals)
        advice.append(
            ScalingRecommendation(
                type=RecommendationType.split_cluster,
                year=max(1, first - 1),
                priority=1,
                title="Plan for Cluster Split",
                description=(
                    f"Cluster limits are approached by Year {first}. Spread "
                    "workloads across multiple clusters before then."
                ),
            )
        )

    if summary.cost_increase_percent > OPTIMIZE_COST_INCREASE_PERCENT:
        advice.append(
            ScalingRecommendation(
                type=RecommendationType.optimize_resources,
                year=1,
                priority=2,
                title="Review Resource Optimization",
                description=(
                    f"Costs increase by {summary.cost_increase_percent:.0f}%. "
                    "Reserved or spot capacity and right-sizing can offset it."
                ),
                estimated_cost_impact=-(
                    summary.total_cost_over_period * OPTIMIZATION_SAVINGS
                ),
            )
        )

    ceiling = LIGHTWEIGHT_NODE_CEILINGS.get(distribution) if distribution else None
    if ceiling is not None and final.nodes > ceiling:
        advice.append(
            ScalingRecommendation(
                type=RecommendationType.consider_managed_service,
                year=1,
                priority=2,
                title="Consider a Managed Kubernetes Service",
                description=(
                    f"{distribution.value} targets small deployments, "
                    f"{final.nodes} nodes are better served by EKS, AKS or GKE."
                ),
            )
        )

    return sorted(advice, key=lambda r: (r.priority, r.year))


def project_cluster_growth(
    sizing: ClusterSizingResult,
    cost: Optional[CostEstimate],
    settings: GrowthSettings = GrowthSettings(),
    limits: TopologyLimits = TopologyLimits(),
) -> GrowthProjection:
    totals = sizing.grand_total
    metrics = np.array(
        [
            totals.apps,
            totals.nodes,
            totals.worker_nodes,
            totals.total_cpu,
            totals.total_ram,
            totals.total_disk,
            cost.monthly_total if cost is not None else 0.0,
        ],
        dtype=float,
    )
    environments = [env.environment for env in sizing.environments]
    env_rows = np.array(
        [
            [
                env.apps,
                env.total_nodes,
                env.total_cpu,
                env.total_ram,
                _env_costs(cost, env.environment),
            ]
            for env in sizing.environments
        ],
        dtype=float,
    ).reshape(-1, 5)

    points = _grow_points(metrics, environments, env_rows, settings)
    warnings = (
        limit_warnings(points, limits) if settings.show_cluster_limit_warnings else []
    )
    summary = summarize(points, warnings)
    logger.debug(
        "Projected %s over %d years: %d -> %d nodes",
        sizing.distribution,
        settings.projection_years,
        points[0].nodes,
        points[-1].nodes,
    )
    return GrowthProjection(
        settings=settings,
        points=points,
        warnings=warnings,
        recommendations=recommendations(
            points, warnings, summary, settings, limits.distribution
        ),
        summary=summary,
    )


def project_vm_growth(
    sizing: VMSizingResult,
    cost: Optional[CostEstimate],
    settings: GrowthSettings = GrowthSettings(),
) -> GrowthProjection:
    """VM fleets grow by VM count, there are no cluster limits to warn about"""
    totals = sizing.grand_total
    metrics = np.array(
        [
            totals.vms,
            totals.vms,
            0,
            totals.total_cpu,
            totals.total_ram,
            totals.total_disk,
            cost.monthly_total if cost is not None else 0.0,
        ],
        dtype=float,
    )
    environments = [env.environment for env in sizing.environments]
    env_rows = np.array(
        [
            [
                env.total_vms,
                env.total_vms,
                env.total_cpu,
                env.total_ram,
                _env_costs(cost, env.environment),
            ]
            for env in sizing.environments
        ],
        dtype=float,
    ).reshape(-1, 5)

    points = _grow_points(metrics, environments, env_rows, settings)
    summary = summarize(points, [])
    return GrowthProjection(
        settings=settings,
        points=points,
        recommendations=recommendations(points, [], summary, settings),
        summary=summary,
    )


def project_growth(
    sizing: Union[ClusterSizingResult, VMSizingResult],
    cost: Optional[CostEstimate],
    settings: Optional[GrowthSettings] = None,
    limits: Optional[TopologyLimits] = None,
) -> GrowthProjection:
    settings = settings or GrowthSettings()
    if isinstance(sizing, ClusterSizingResult):
        return project_cluster_growth(
            sizing, cost, settings, limits or TopologyLimits()
        )
    if isinstance(sizing, VMSizingResult):
        return project_vm_growth(sizing, cost, settings)
    raise InvalidInput(f"Cannot project growth of {type(sizing).__name__}")
