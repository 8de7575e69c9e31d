import logging
from typing import Dict
from typing import Iterable
from typing import Optional
from typing import Tuple
from typing import Union

from infra_sizing import catalog
from infra_sizing.errors import UnknownCatalogKey
from infra_sizing.interface import AppCounts
from infra_sizing.interface import CloudProvider
from infra_sizing.interface import ClusterMode
from infra_sizing.interface import ClusterSizingResult
from infra_sizing.interface import CostComparison
from infra_sizing.interface import CostEstimate
from infra_sizing.interface import CostOptions
from infra_sizing.interface import Distribution
from infra_sizing.interface import Environment
from infra_sizing.interface import GrowthProjection
from infra_sizing.interface import GrowthSettings
from infra_sizing.interface import OnPremPricing
from infra_sizing.interface import PolicySettings
from infra_sizing.interface import PricingModel
from infra_sizing.interface import SizingReport
from infra_sizing.interface import Technology
from infra_sizing.interface import TechnologyProfile
from infra_sizing.interface import TopologyCapabilities
from infra_sizing.interface import VMEnvironmentConfig
from infra_sizing.interface import VMSizingResult
from infra_sizing.interface import VMWorkload
from infra_sizing.interface import WorkloadSpec
from infra_sizing.models.cost import compare_estimates
from infra_sizing.models.cost import estimate_cost
from infra_sizing.models.growth import project_growth
from infra_sizing.models.topology import calculate_cluster_sizing
from infra_sizing.models.vm import calculate_vm_fleet_sizing
from infra_sizing.pricing import default_pricing
from infra_sizing.pricing import load_pricing_from_disk

logger = logging.getLogger(__name__)

__all__ = [
    "SizingPlanner",
    "calculate_cluster_sizing",
    "calculate_vm_fleet_sizing",
    "estimate_cost",
    "project_growth",
    "planner",
]

Sizing = Union[ClusterSizingResult, VMSizingResult]
Pricing = Union[PricingModel, OnPremPricing]


class SizingPlanner:
    """Resolves catalog keys and runs the sizing, cost and growth models

    Every calculation is a pure function of its inputs, the planner only
    holds the read-only catalogs and any pricing overrides registered on it.
    """

    def __init__(
        self,
        distributions: Optional[Dict[Distribution, TopologyCapabilities]] = None,
        technologies: Optional[Dict[Technology, TechnologyProfile]] = None,
        on_prem: Optional[OnPremPricing] = None,
    ):
        self._distributions = dict(
            catalog.DISTRIBUTIONS if distributions is None else distributions
        )
        self._technologies = dict(
            catalog.TECHNOLOGIES if technologies is None else technologies
        )
        self._on_prem = OnPremPricing() if on_prem is None else on_prem
        self._pricing: Dict[Tuple[CloudProvider, str], PricingModel] = {}

    def register_pricing(self, pricing: PricingModel):
        logger.debug("Registering %s pricing for %s", pricing.provider, pricing.region)
        self._pricing[(pricing.provider, pricing.region)] = pricing

    @property
    def distributions(self) -> Dict[Distribution, TopologyCapabilities]:
        return self._distributions

    @property
    def technologies(self) -> Dict[Technology, TechnologyProfile]:
        return self._technologies

    def distribution(
        self, name: Union[str, Distribution]
    ) -> Tuple[Distribution, TopologyCapabilities]:
        key = catalog.resolve("distribution", self._distributions, name, Distribution)
        return key, self._distributions[key]

    def technology(self, name: Union[str, Technology]) -> TechnologyProfile:
        key = catalog.resolve("technology", self._technologies, name, Technology)
        return self._technologies[key]

    def pricing(
        self, provider: Union[str, CloudProvider], region: Optional[str] = None
    ) -> Pricing:
        try:
            key = CloudProvider(str(provider).lower())
        except ValueError as exc:
            raise UnknownCatalogKey("provider", provider, list(CloudProvider)) from exc
        if key == CloudProvider.on_prem:
            return self._on_prem
        for (registered, registered_region), model in self._pricing.items():
            if registered == key and region in (None, registered_region):
                return model
        return default_pricing(key, region)

    def size_cluster(  # pylint: disable=too-many-arguments
        self,
        distribution: Union[str, Distribution],
        technology: Union[str, Technology],
        prod_apps: AppCounts,
        non_prod_apps: AppCounts = AppCounts(),
        environment_apps: Optional[Dict[Environment, AppCounts]] = None,
        enabled_environments: Optional[Iterable[Environment]] = None,
        policy: PolicySettings = PolicySettings(),
        cluster_mode: ClusterMode = ClusterMode.multi,
        selected_environment: Environment = Environment.prod,
    ) -> ClusterSizingResult:
        _, topology = self.distribution(distribution)
        extra = {}
        if enabled_environments is not None:
            extra["enabled_environments"] = tuple(enabled_environments)
        if environment_apps is not None:
            extra["environment_apps"] = environment_apps
        workload = WorkloadSpec(
            technology=self.technology(technology),
            prod_apps=prod_apps,
            non_prod_apps=non_prod_apps,
            **extra,
        )
        return calculate_cluster_sizing(
            workload, topology, policy, cluster_mode, selected_environment
        )

    def size_vm_fleet(
        self,
        technology: Union[str, Technology],
        environment_configs: Dict[Environment, VMEnvironmentConfig],
        enabled_environments: Optional[Iterable[Environment]] = None,
        system_overhead_percent: float = 15,
    ) -> VMSizingResult:
        workload = VMWorkload(
            technology=self.technology(technology),
            enabled_environments=tuple(
                enabled_environments
                if enabled_environments is not None
                else environment_configs.keys()
            ),
            system_overhead_percent=system_overhead_percent,
        )
        return calculate_vm_fleet_sizing(workload, None, environment_configs)

    def estimate(
        self,
        sizing: Sizing,
        provider: Union[str, CloudProvider] = CloudProvider.aws,
        region: Optional[str] = None,
        options: Optional[CostOptions] = None,
    ) -> CostEstimate:
        return estimate_cost(sizing, self.pricing(provider, region), options)

    def compare(
        self,
        sizing: Sizing,
        targets: Iterable[Tuple[Union[str, CloudProvider], Optional[str]]],
        options: Optional[CostOptions] = None,
    ) -> CostComparison:
        return compare_estimates(
            [
                self.estimate(sizing, provider, region, options)
                for provider, region in targets
            ]
        )

    def project(
        self,
        sizing: Sizing,
        cost: Optional[CostEstimate],
        settings: Optional[GrowthSettings] = None,
        distribution: Union[str, Distribution, None] = None,
    ) -> GrowthProjection:
        limits = None
        if isinstance(sizing, ClusterSizingResult):
            limits = catalog.limits_for(distribution)
        return project_growth(sizing, cost, settings, limits)

    def report(  # pylint: disable=too-many-arguments
        self,
        sizing: Sizing,
        provider: Union[str, CloudProvider] = CloudProvider.aws,
        region: Optional[str] = None,
        options: Optional[CostOptions] = None,
        settings: Optional[GrowthSettings] = None,
        distribution: Union[str, Distribution, None] = None,
        compare_with: Iterable[Tuple[Union[str, CloudProvider], Optional[str]]] = (),
    ) -> SizingReport:
        """Cost and growth of ``sizing`` in one result"""
        cost = self.estimate(sizing, provider, region, options)
        targets = list(compare_with)
        comparison = None
        if targets:
            comparison = self.compare(sizing, [(provider, region)] + targets, options)
        return SizingReport(
            sizing=sizing,
            cost=cost,
            comparison=comparison,
            growth=self.project(sizing, cost, settings, distribution),
        )


planner = SizingPlanner()
_override = load_pricing_from_disk()
if _override is not None:
    planner.register_pricing(_override)
