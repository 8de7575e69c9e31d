from typing import Optional
from typing import Sequence

from infra_sizing.interface import AppCounts
from infra_sizing.interface import AppTier
from infra_sizing.interface import CategoryCost
from infra_sizing.interface import CloudProvider
from infra_sizing.interface import ClusterMode
from infra_sizing.interface import ClusterSizingResult
from infra_sizing.interface import CostCategory
from infra_sizing.interface import CostEstimate
from infra_sizing.interface import Environment
from infra_sizing.interface import EnvironmentSizing
from infra_sizing.interface import HeadroomSettings
from infra_sizing.interface import NodeSpec
from infra_sizing.interface import PolicySettings
from infra_sizing.interface import TechnologyProfile
from infra_sizing.interface import TierFootprint
from infra_sizing.interface import TopologyCapabilities
from infra_sizing.interface import WorkloadSpec


def technology(
    *,
    name: str = "Test Runtime",
    small=(0.25, 0.5),
    medium=(0.5, 1.0),
    large=(1.0, 2.0),
    xlarge=(2.0, 4.0),
    vm_memory_multiplier: float = 1.0,
) -> TechnologyProfile:
    """A technology whose medium app asks for 0.5 vCPU and 1 GB per replica"""
    specs = dict(zip(AppTier, (small, medium, large, xlarge)))
    return TechnologyProfile(
        name=name,
        tiers={
            tier: TierFootprint(cpu=cpu, ram=ram) for tier, (cpu, ram) in specs.items()
        },
        vm_memory_multiplier=vm_memory_multiplier,
    )


def managed_topology(
    *, worker: NodeSpec = NodeSpec(cpu=8, ram=32, disk=100)
) -> TopologyCapabilities:
    return TopologyCapabilities(
        name="Managed",
        has_managed_control_plane=True,
        prod_worker=worker,
        non_prod_worker=NodeSpec(cpu=4, ram=16, disk=50),
    )


def self_managed_topology() -> TopologyCapabilities:
    return TopologyCapabilities(
        name="Self Managed",
        prod_control_plane=NodeSpec(cpu=4, ram=16, disk=100),
        non_prod_control_plane=NodeSpec(cpu=2, ram=8, disk=50),
        prod_worker=NodeSpec(cpu=8, ram=32, disk=100),
        non_prod_worker=NodeSpec(cpu=4, ram=16, disk=50),
    )


def workload(
    *,
    prod: AppCounts = AppCounts(),
    non_prod: AppCounts = AppCounts(),
    environments: Sequence[Environment] = (Environment.prod,),
    tech: Optional[TechnologyProfile] = None,
) -> WorkloadSpec:
    return WorkloadSpec(
        technology=tech or technology(),
        enabled_environments=tuple(environments),
        prod_apps=prod,
        non_prod_apps=non_prod,
    )


def no_headroom() -> PolicySettings:
    return PolicySettings(enable_headroom=False)


def zero_headroom() -> PolicySettings:
    return PolicySettings(
        headroom=HeadroomSettings(dev=0, test=0, stage=0, prod=0, dr=0)
    )


def env_sizing(
    *,
    environment: Environment = Environment.prod,
    apps: int = 100,
    control_plane: int = 0,
    infra: int = 0,
    workers: int = 10,
    cpu: int = 80,
    ram: int = 320,
    disk: int = 1000,
) -> EnvironmentSizing:
    return EnvironmentSizing(
        environment=environment,
        name=environment.display_name,
        is_prod=environment.is_prod,
        apps=apps,
        replicas=3,
        pods=apps * 3,
        cpu_required=float(cpu),
        ram_required=float(ram),
        control_plane_nodes=control_plane,
        infra_nodes=infra,
        worker_nodes=workers,
        total_cpu=cpu,
        total_ram=ram,
        total_disk=disk,
    )


def cluster_result(*environments: EnvironmentSizing) -> ClusterSizingResult:
    return ClusterSizingResult(
        mode=ClusterMode.multi,
        distribution="Managed",
        technology="Test Runtime",
        environments=list(environments or (env_sizing(),)),
    )


def flat_cost(monthly: float) -> CostEstimate:
    return CostEstimate(
        provider=CloudProvider.aws,
        region="us-east-1",
        categories={
            CostCategory.compute: CategoryCost(
                category=CostCategory.compute,
                description="Compute",
                monthly=monthly,
            )
        },
    )
