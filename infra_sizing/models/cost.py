"""Monthly cost of a sized cluster or VM fleet.

Every category is priced on its own from line items and the categories are
then summed. Support is a percentage of everything else, so it is always
priced last. Category and environment percentages are only filled in once
the monthly total is final, which keeps them consistent with the total.
Each environment is allocated a share of the total by its node count
(clusters) or its combined CPU and RAM (VM fleets).
"""

import logging
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

from infra_sizing.enum_utils import describe
from infra_sizing.errors import InvalidInput
from infra_sizing.interface import CategoryCost
from infra_sizing.interface import CloudProvider
from infra_sizing.interface import ClusterSizingResult
from infra_sizing.interface import CostCategory
from infra_sizing.interface import CostComparison
from infra_sizing.interface import CostEstimate
from infra_sizing.interface import CostLineItem
from infra_sizing.interface import CostOptions
from infra_sizing.interface import EnvironmentCost
from infra_sizing.interface import HOURS_PER_MONTH
from infra_sizing.interface import LicenseRates
from infra_sizing.interface import MONTHS_PER_YEAR
from infra_sizing.interface import OnPremPricing
from infra_sizing.interface import PricingModel
from infra_sizing.interface import SupportRates
from infra_sizing.interface import SupportTier
from infra_sizing.interface import VMSizingResult
from infra_sizing.models.common import ensure_finite
from infra_sizing.models.common import share

logger = logging.getLogger(__name__)

ON_PREM_REGION = "On-Premises"
ON_PREM_COMPUTE = "Compute hardware (amortised)"
SIGNIFICANT_SPREAD_PERCENT = 30
TCO_COMPARISON_YEARS = 3

ON_PREM_CHEAPER = "On-premises may be more cost-effective for long-term deployments"
CLOUD_CHEAPER = (
    "Cloud may be more cost-effective due to elasticity and reduced "
    "operational overhead"
)

Sizing = Union[ClusterSizingResult, VMSizingResult]
Pricing = Union[PricingModel, OnPremPricing]


def _item(
    description: str, quantity: float, unit_price: float, unit: str
) -> CostLineItem:
    return CostLineItem(
        description=description,
        quantity=quantity,
        unit_price=ensure_finite(unit_price, description),
        unit=unit,
    )


def _monthly(description: str, amount: float) -> CostLineItem:
    return _item(description, 1, amount, "month")


def _category(
    category: CostCategory,
    items: Sequence[CostLineItem],
    description: Optional[str] = None,
) -> CategoryCost:
    return CategoryCost(
        category=category,
        description=description or describe(category),
        monthly=sum(item.total for item in items),
        line_items=list(items),
    )


class _Ledger:
    """Accumulates priced categories in pricing order"""

    def __init__(self) -> None:
        self.categories: Dict[CostCategory, CategoryCost] = {}

    def add(
        self,
        category: CostCategory,
        items: Sequence[CostLineItem],
        description: Optional[str] = None,
    ) -> None:
        if not items:
            return
        self.categories[category] = _category(category, items, description)
        logger.debug(
            "%s: %.2f/month over %d line item(s)",
            category,
            self.categories[category].monthly,
            len(items),
        )

    @property
    def subtotal(self) -> float:
        return sum(c.monthly for c in self.categories.values())

    def add_support(self, options: CostOptions, support: SupportRates) -> None:
        if not options.include_support or options.support_tier == SupportTier.none:
            return
        percent = support.for_tier(options.support_tier)
        amount = self.subtotal * percent / 100
        if amount > 0:
            tier = options.support_tier.value.capitalize()
            self.add(
                CostCategory.support,
                [_monthly(f"{tier} Support ({percent:g}%)", amount)],
            )


def _license_items(
    licenses: LicenseRates, distribution: Optional[str], nodes: int
) -> List[CostLineItem]:
    per_node_year = licenses.for_distribution(distribution)
    if per_node_year <= 0 or nodes <= 0:
        return []
    return [
        _item(
            f"{distribution} subscription",
            nodes,
            per_node_year / MONTHS_PER_YEAR,
            "node-month",
        )
    ]


def _finalize(
    provider: CloudProvider,
    region: str,
    currency: str,
    source: str,
    ledger: _Ledger,
    environments: Sequence[EnvironmentCost],
    weights: Sequence[float],
) -> CostEstimate:
    """Fill in percentages and environment allocations from the final total"""
    total = ledger.subtotal
    categories = {
        key: cost.model_copy(update={"percentage": share(cost.monthly, total) * 100})
        for key, cost in ledger.categories.items()
    }

    whole = sum(weights)
    allocated = []
    for env_cost, weight in zip(environments, weights):
        fraction = share(weight, whole)
        allocated.append(
            env_cost.model_copy(
                update={
                    "monthly_cost": total * fraction,
                    "percentage": fraction * 100,
                }
            )
        )

    estimate = CostEstimate(
        provider=provider,
        region=region,
        currency=currency,
        source=source,
        categories=categories,
        environments=allocated,
    )
    logger.debug(
        "Estimated %s/%s at %.2f %s/month",
        provider,
        region,
        estimate.monthly_total,
        currency,
    )
    return estimate


def _cluster_environments(sizing: ClusterSizingResult) -> List[EnvironmentCost]:
    return [
        EnvironmentCost(
            environment=env.environment,
            name=env.name,
            monthly_cost=0.0,
            nodes=env.total_nodes,
            total_cpu=env.total_cpu,
            total_ram=env.total_ram,
            total_disk=env.total_disk,
        )
        for env in sizing.environments
    ]


def _vm_environments(sizing: VMSizingResult) -> List[EnvironmentCost]:
    return [
        EnvironmentCost(
            environment=env.environment,
            name=env.name,
            monthly_cost=0.0,
            nodes=env.total_vms,
            total_cpu=env.total_cpu,
            total_ram=env.total_ram,
            total_disk=env.total_disk,
        )
        for env in sizing.environments
    ]


def _cpu_ram_weights(environments: Sequence[EnvironmentCost]) -> List[float]:
    return [float(e.total_cpu + e.total_ram) for e in environments]


def _node_weights(environments: Sequence[EnvironmentCost]) -> List[float]:
    return [float(e.nodes) for e in environments]


def _compute_items(cpu: int, ram: int, pricing: PricingModel) -> List[CostLineItem]:
    return [
        _item(
            "vCPU", cpu, pricing.compute.cpu_per_hour * HOURS_PER_MONTH, "vcpu-month"
        ),
        _item(
            "RAM",
            ram,
            pricing.compute.ram_gb_per_hour * HOURS_PER_MONTH,
            "gb-month",
        ),
    ]


def estimate_cluster_cost(
    sizing: ClusterSizingResult,
    pricing: PricingModel,
    options: CostOptions = CostOptions(),
) -> CostEstimate:
    """Cloud cost of every cluster in ``sizing``"""
    totals = sizing.grand_total
    headroom = 1 + options.headroom_percent / 100
    cpu = int(totals.total_cpu * headroom)
    ram = int(totals.total_ram * headroom)
    clusters = len(sizing.environments)
    ledger = _Ledger()

    if options.include_compute:
        items = _compute_items(cpu, ram, pricing)
        control_plane_rate = pricing.compute.managed_control_plane_per_hour
        if options.include_managed_control_plane and control_plane_rate > 0:
            items.append(
                _item(
                    "Managed Control Plane",
                    clusters,
                    control_plane_rate * HOURS_PER_MONTH,
                    "cluster-month",
                )
            )
        ledger.add(CostCategory.compute, items)

    if options.include_storage:
        ssd_gb = totals.total_disk or totals.nodes * options.storage_gb_per_node
        ledger.add(
            CostCategory.storage,
            [
                _item(
                    "Block Storage (SSD)",
                    ssd_gb,
                    pricing.storage.ssd_per_gb_month,
                    "gb-month",
                ),
                _item(
                    "Container Registry",
                    options.registry_gb,
                    pricing.storage.registry_per_gb_month,
                    "gb-month",
                ),
            ],
        )

    if options.include_network:
        ledger.add(
            CostCategory.network,
            [
                _item(
                    "Data Egress",
                    options.monthly_egress_gb,
                    pricing.network.egress_per_gb,
                    "gb",
                ),
                _item(
                    "Load Balancers",
                    options.load_balancers,
                    pricing.network.load_balancer_per_hour * HOURS_PER_MONTH,
                    "lb-month",
                ),
                _item(
                    "NAT Gateway",
                    1,
                    pricing.network.nat_gateway_per_hour * HOURS_PER_MONTH,
                    "month",
                ),
            ],
        )

    if options.include_licenses:
        ledger.add(
            CostCategory.license,
            _license_items(pricing.licenses, options.distribution, totals.nodes),
        )

    ledger.add_support(options, pricing.support)

    environments = _cluster_environments(sizing)
    return _finalize(
        pricing.provider,
        pricing.region,
        pricing.currency,
        pricing.source,
        ledger,
        environments,
        _node_weights(environments),
    )


def estimate_vm_cost(
    sizing: VMSizingResult,
    pricing: PricingModel,
    options: CostOptions = CostOptions(),
) -> CostEstimate:
    """Cloud cost of a VM fleet, VMs are billed on their raw CPU and RAM"""
    totals = sizing.grand_total
    ledger = _Ledger()

    if options.include_compute:
        ledger.add(
            CostCategory.compute,
            _compute_items(totals.total_cpu, totals.total_ram, pricing),
        )

    if options.include_storage and totals.total_disk > 0:
        ledger.add(
            CostCategory.storage,
            [
                _item(
                    "Block Storage (SSD)",
                    totals.total_disk,
                    pricing.storage.ssd_per_gb_month,
                    "gb-month",
                )
            ],
        )

    if options.include_network:
        with_lb_vms = sum(1 for e in sizing.environments if e.load_balancer_vms > 0)
        ledger.add(
            CostCategory.network,
            [
                _item(
                    "Data Egress",
                    options.monthly_egress_gb,
                    pricing.network.egress_per_gb,
                    "gb",
                ),
                _item(
                    "Load Balancers",
                    max(options.load_balancers, with_lb_vms),
                    pricing.network.load_balancer_per_hour * HOURS_PER_MONTH,
                    "lb-month",
                ),
            ],
        )

    ledger.add_support(options, pricing.support)

    environments = _vm_environments(sizing)
    return _finalize(
        pricing.provider,
        pricing.region,
        pricing.currency,
        pricing.source,
        ledger,
        environments,
        _cpu_ram_weights(environments),
    )


def _on_prem_shared_items(
    pricing: OnPremPricing,
    options: CostOptions,
    ledger: _Ledger,
    servers: int,
    disk_gb: int,
    nodes: int,
) -> None:
    months = pricing.amortisation_months
    if options.include_storage and disk_gb > 0:
        ledger.add(
            CostCategory.storage,
            [
                _item(
                    "SSD Storage (amortised)",
                    disk_gb / 1000,
                    pricing.hardware.per_tb_ssd / months,
                    "tb-month",
                )
            ],
        )
    ledger.add(
        CostCategory.data_center,
        [
            _monthly(
                "Rack Space, Power and Cooling",
                pricing.data_center.monthly_cost(servers),
            )
        ],
    )
    ledger.add(
        CostCategory.labor,
        [_monthly("Operations Staff", pricing.labor.monthly_cost(nodes))],
    )


def estimate_on_prem_cluster_cost(
    sizing: ClusterSizingResult,
    pricing: OnPremPricing,
    options: CostOptions = CostOptions(),
) -> CostEstimate:
    """Owned hardware cost of every cluster in ``sizing``

    Servers are bought to hold the total vCPU, plus a per core and per GB
    component price, all amortised over the refresh cycle.
    """
    totals = sizing.grand_total
    months = pricing.amortisation_months
    servers = pricing.servers_for(totals.total_cpu)
    ledger = _Ledger()

    ledger.add(
        CostCategory.compute,
        [
            _item(
                "Servers (amortised with maintenance)",
                servers,
                pricing.monthly_hardware_cost(1),
                "server-month",
            ),
            _item(
                "vCPU",
                totals.total_cpu,
                pricing.hardware.per_cpu_core / months,
                "core-month",
            ),
            _item(
                "RAM",
                totals.total_ram,
                pricing.hardware.per_gb_ram / months,
                "gb-month",
            ),
        ],
        ON_PREM_COMPUTE,
    )
    _on_prem_shared_items(
        pricing, options, ledger, servers, totals.total_disk, totals.nodes
    )

    if options.include_licenses:
        ledger.add(
            CostCategory.license,
            _license_items(pricing.licenses, options.distribution, totals.nodes),
        )

    environments = _cluster_environments(sizing)
    return _finalize(
        CloudProvider.on_prem,
        ON_PREM_REGION,
        pricing.currency,
        "on-premises",
        ledger,
        environments,
        _node_weights(environments),
    )


def estimate_on_prem_vm_cost(
    sizing: VMSizingResult,
    pricing: OnPremPricing,
    options: CostOptions = CostOptions(),
) -> CostEstimate:
    totals = sizing.grand_total
    servers = pricing.servers_for(totals.total_cpu)
    ledger = _Ledger()
    ledger.add(
        CostCategory.compute,
        [
            _item(
                "Servers (amortised with maintenance)",
                servers,
                pricing.monthly_hardware_cost(1),
                "server-month",
            )
        ],
        ON_PREM_COMPUTE,
    )
    _on_prem_shared_items(
        pricing, options, ledger, servers, totals.total_disk, totals.vms
    )

    environments = _vm_environments(sizing)
    return _finalize(
        CloudProvider.on_prem,
        ON_PREM_REGION,
        pricing.currency,
        "on-premises",
        ledger,
        environments,
        _cpu_ram_weights(environments),
    )


_ESTIMATORS: Dict[tuple, Callable[..., CostEstimate]] = {
    (ClusterSizingResult, PricingModel): estimate_cluster_cost,
    (VMSizingResult, PricingModel): estimate_vm_cost,
    (ClusterSizingResult, OnPremPricing): estimate_on_prem_cluster_cost,
    (VMSizingResult, OnPremPricing): estimate_on_prem_vm_cost,
}


def estimate_cost(
    sizing: Sizing,
    pricing: Pricing,
    options: Optional[CostOptions] = None,
) -> CostEstimate:
    """Price ``sizing`` in the cloud or on premises depending on ``pricing``"""
    estimator = _ESTIMATORS.get((type(sizing), type(pricing)))
    if estimator is None:
        raise InvalidInput(
            f"Cannot price {type(sizing).__name__} with {type(pricing).__name__}"
        )
    return estimator(sizing, pricing, options or CostOptions())


def _label(estimate: CostEstimate) -> str:
    return f"{estimate.provider.value}-{estimate.region}"


def compare_estimates(estimates: Sequence[CostEstimate]) -> CostComparison:
    """Rank estimates of the same sizing and point out large differences"""
    if not estimates:
        return CostComparison()

    ranked = sorted(estimates, key=lambda e: e.monthly_total)
    cheapest, most_expensive = ranked[0], ranked[-1]
    savings = {
        _label(e): e.monthly_total - cheapest.monthly_total for e in ranked[1:]
    }

    insights = []
    spread = share(
        most_expensive.monthly_total - cheapest.monthly_total,
        most_expensive.monthly_total,
    ) * 100
    if spread > SIGNIFICANT_SPREAD_PERCENT:
        insights.append(
            f"Significant cost difference ({spread:.0f}%) between providers"
        )

    on_prem = [e for e in estimates if e.provider == CloudProvider.on_prem]
    cloud = [e for e in estimates if e.provider != CloudProvider.on_prem]
    if on_prem and cloud:
        on_prem_tco = on_prem[0].tco(TCO_COMPARISON_YEARS)
        cloud_tco = sum(e.tco(TCO_COMPARISON_YEARS) for e in cloud) / len(cloud)
        insights.append(ON_PREM_CHEAPER if on_prem_tco < cloud_tco else CLOUD_CHEAPER)

    return CostComparison(
        estimates=list(ranked),
        cheapest=_label(cheapest),
        most_expensive=_label(most_expensive),
        potential_savings=savings,
        insights=insights,
    )
