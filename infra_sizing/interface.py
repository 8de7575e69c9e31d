# pylint: disable=too-many-lines
from __future__ import annotations

import math
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

from pydantic import BaseModel
from pydantic import computed_field
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

from infra_sizing.enum_utils import enum_docstrings
from infra_sizing.enum_utils import StrEnum
from infra_sizing.errors import UnknownCatalogKey

HOURS_PER_MONTH = 730
MONTHS_PER_YEAR = 12


class ExcludeUnsetModel(BaseModel):
    def model_dump(self, *args, **kwargs):
        if "exclude_unset" not in kwargs:
            kwargs["exclude_unset"] = True
        return super().model_dump(*args, **kwargs)

    def model_dump_json(self, *args, **kwargs):
        if "exclude_unset" not in kwargs:
            kwargs["exclude_unset"] = True
        return super().model_dump_json(*args, **kwargs)


###############################################################################
#                    Enumerations shared by every calculator                  #
###############################################################################


@enum_docstrings
class Environment(StrEnum):
    """Deployment stage a workload is sized for"""

    dev = "dev"
    """Development"""

    test = "test"
    """Test / QA"""

    stage = "stage"
    """Pre-production staging"""

    prod = "prod"
    """Production"""

    dr = "dr"
    """Disaster recovery copy of production"""

    @property
    def is_prod(self) -> bool:
        return self in (Environment.prod, Environment.dr)

    @property
    def display_name(self) -> str:
        return {
            Environment.dev: "Development",
            Environment.test: "Test",
            Environment.stage: "Staging",
            Environment.prod: "Production",
            Environment.dr: "DR",
        }[self]


def sort_environments(environments) -> Tuple[Environment, ...]:
    """De-duplicate and order environments dev -> dr"""
    order = list(Environment)
    return tuple(sorted(set(environments), key=order.index))


@enum_docstrings
class ClusterMode(StrEnum):
    """How environments map onto clusters"""

    multi = "multi"
    """One isolated cluster per enabled environment"""

    shared = "shared"
    """A single cluster shared by every enabled environment"""

    per_environment = "per_environment"
    """A single cluster holding only the selected environment"""


@enum_docstrings
class AppTier(StrEnum):
    """Application size class"""

    small = "small"
    """Small application"""

    medium = "medium"
    """Medium application"""

    large = "large"
    """Large application"""

    xlarge = "xlarge"
    """Extra-large application"""


class Distribution(StrEnum):
    openshift = "openshift"
    rosa = "rosa"
    aro = "aro"
    kubernetes = "kubernetes"
    rancher = "rancher"
    rke2 = "rke2"
    tanzu = "tanzu"
    charmed = "charmed"
    k3s = "k3s"
    microk8s = "microk8s"
    eks = "eks"
    aks = "aks"
    gke = "gke"
    oke = "oke"


class Technology(StrEnum):
    dotnet = "dotnet"
    java = "java"
    nodejs = "nodejs"
    python = "python"
    go = "go"
    mendix = "mendix"
    outsystems = "outsystems"


@enum_docstrings
class ServerRole(StrEnum):
    """Function a VM performs inside a fleet"""

    web = "web"
    """Web Server"""

    app = "app"
    """Application Server"""

    database = "database"
    """Database Server"""

    cache = "cache"
    """Cache Server"""

    message_queue = "message_queue"
    """Message Queue"""

    search = "search"
    """Search Server"""

    storage = "storage"
    """Storage Server"""

    monitoring = "monitoring"
    """Monitoring Server"""

    bastion = "bastion"
    """Bastion Host"""


@enum_docstrings
class HAPattern(StrEnum):
    """Redundancy scheme applied to every role of a VM environment"""

    none = "none"
    """No redundancy, 1x instances"""

    active_active = "active_active"
    """Two live copies of every instance, 2x"""

    active_passive = "active_passive"
    """A standby copy of every instance, 2x"""

    n_plus_1 = "n_plus_1"
    """One spare per role, 1.5x"""

    n_plus_2 = "n_plus_2"
    """Two spares per role, 1.67x"""


@enum_docstrings
class DRPattern(StrEnum):
    """Disaster recovery posture recorded for a VM environment"""

    none = "none"
    """No disaster recovery"""

    pilot_light = "pilot_light"
    """Minimal core kept running in the recovery site"""

    warm_standby = "warm_standby"
    """Scaled down copy kept running in the recovery site"""

    hot_standby = "hot_standby"
    """Full copy kept running in the recovery site"""

    multi_region = "multi_region"
    """Active deployments in several regions"""


@enum_docstrings
class LoadBalancerOption(StrEnum):
    """Load balancing tier in front of a VM environment"""

    none = "none"
    """No load balancer"""

    single = "single"
    """A single load balancer VM"""

    ha_pair = "ha_pair"
    """Two load balancer VMs"""

    cloud_lb = "cloud_lb"
    """Provider managed load balancer, no VMs"""


class CloudProvider(StrEnum):
    aws = "aws"
    azure = "azure"
    gcp = "gcp"
    on_prem = "on_prem"


@enum_docstrings
class CostCategory(StrEnum):
    """Bucket a monthly cost is reported under"""

    compute = "compute"
    """vCPU, RAM and managed control planes"""

    storage = "storage"
    """Block storage and container registry"""

    network = "network"
    """Egress, load balancers and NAT"""

    license = "license"
    """Distribution subscriptions"""

    support = "support"
    """Vendor support plan"""

    data_center = "data_center"
    """Rack space, power and cooling"""

    labor = "labor"
    """Operations staff"""


class SupportTier(StrEnum):
    none = "none"
    basic = "basic"
    developer = "developer"
    business = "business"
    enterprise = "enterprise"


@enum_docstrings
class GrowthPattern(StrEnum):
    """Shape of year over year growth"""

    linear = "linear"
    """Same rate applied to the previous year's value"""

    exponential = "exponential"
    """Yearly compounding, identical to linear when stepped year by year"""

    s_curve = "s_curve"
    """Slow, fast, then slow adoption peaking mid horizon"""

    custom = "custom"
    """Explicit rate per year, unspecified years use the annual rate"""


class WarningSeverity(StrEnum):
    warning = "warning"
    critical = "critical"


class RecommendationType(StrEnum):
    enable_autoscaling = "enable_autoscaling"
    upgrade_node_size = "upgrade_node_size"
    split_cluster = "split_cluster"
    optimize_resources = "optimize_resources"
    consider_managed_service = "consider_managed_service"


###############################################################################
#                 Catalog shapes: nodes, tiers, distributions                 #
###############################################################################


class NodeSpec(BaseModel):
    """Shape of a single node or VM"""

    cpu: int = Field(ge=0, description="vCPU cores")
    ram: int = Field(ge=0, description="RAM in GB")
    disk: int = Field(default=100, ge=0, description="Disk in GB")
    model_config = ConfigDict(frozen=True)

    def scale(self, count: int) -> NodeSpec:
        return NodeSpec(
            cpu=self.cpu * count, ram=self.ram * count, disk=self.disk * count
        )

    def __add__(self, other: NodeSpec) -> NodeSpec:
        return NodeSpec(
            cpu=self.cpu + other.cpu,
            ram=self.ram + other.ram,
            disk=self.disk + other.disk,
        )


ZERO_NODE = NodeSpec(cpu=0, ram=0, disk=0)


class TierFootprint(BaseModel):
    """Per replica resource request of one application size class"""

    cpu: float = Field(ge=0)
    ram: float = Field(ge=0)
    model_config = ConfigDict(frozen=True)


class TopologyCapabilities(BaseModel):
    """What a distribution provides and the node shapes it runs on"""

    name: str
    vendor: str = ""
    has_managed_control_plane: bool = False
    has_infra_nodes: bool = False

    prod_control_plane: NodeSpec = ZERO_NODE
    non_prod_control_plane: NodeSpec = ZERO_NODE
    prod_worker: NodeSpec
    non_prod_worker: NodeSpec
    prod_infra: NodeSpec = ZERO_NODE
    non_prod_infra: NodeSpec = ZERO_NODE
    model_config = ConfigDict(frozen=True)

    def control_plane_for(self, is_prod: bool) -> NodeSpec:
        return self.prod_control_plane if is_prod else self.non_prod_control_plane

    def infra_for(self, is_prod: bool) -> NodeSpec:
        return self.prod_infra if is_prod else self.non_prod_infra


class VMRoleTemplate(BaseModel):
    """Role a technology typically deploys on VMs"""

    role: ServerRole
    name: Optional[str] = None
    default_size: AppTier = AppTier.medium
    default_instances: int = Field(default=1, ge=1)
    default_disk_gb: int = Field(default=100, ge=0)
    required: bool = False
    description: str = ""
    model_config = ConfigDict(frozen=True)

    def to_config(self) -> VMRoleConfig:
        return VMRoleConfig(
            role=self.role,
            size=self.default_size,
            instances=self.default_instances,
            name=self.name,
            disk_gb=self.default_disk_gb,
        )


class TechnologyProfile(BaseModel):
    name: str
    tiers: Dict[AppTier, TierFootprint]
    # RAM multiplier applied to VM role shapes for memory hungry runtimes
    vm_memory_multiplier: float = Field(default=1.0, gt=0)
    role_templates: Tuple[VMRoleTemplate, ...] = ()
    model_config = ConfigDict(frozen=True)

    def footprint(self, tier: AppTier) -> TierFootprint:
        if tier not in self.tiers:
            raise UnknownCatalogKey(f"{self.name} tier", tier, self.tiers.keys())
        return self.tiers[tier]


###############################################################################
#                    Policy: replicas, headroom, overcommit                   #
###############################################################################


class PerEnvironment(BaseModel):
    """Immutable record with exactly one value per environment"""

    model_config = ConfigDict(frozen=True)

    def __getitem__(self, environment: Environment):
        return getattr(self, Environment(environment).value)


class ReplicaSettings(PerEnvironment):
    dev: int = Field(default=1, ge=1)
    test: int = Field(default=1, ge=1)
    stage: int = Field(default=2, ge=1)
    prod: int = Field(default=3, ge=1)
    dr: int = Field(default=3, ge=1)


class HeadroomSettings(PerEnvironment):
    """Percentage of extra worker capacity reserved per environment"""

    dev: float = Field(default=33.0, ge=0)
    test: float = Field(default=33.0, ge=0)
    stage: float = Field(default=0.0, ge=0)
    prod: float = Field(default=37.5, ge=0)
    dr: float = Field(default=37.5, ge=0)


class Overcommit(BaseModel):
    cpu: float = Field(default=1.0, gt=0)
    memory: float = Field(default=1.0, gt=0)
    model_config = ConfigDict(frozen=True)


class OvercommitSettings(BaseModel):
    prod: Overcommit = Overcommit()
    non_prod: Overcommit = Overcommit()
    model_config = ConfigDict(frozen=True)

    def for_environment(self, environment: Environment) -> Overcommit:
        return self.prod if environment.is_prod else self.non_prod


class PolicySettings(BaseModel):
    """Sizing rules applied to every cluster of a calculation"""

    replicas: ReplicaSettings = ReplicaSettings()
    headroom: HeadroomSettings = HeadroomSettings()
    enable_headroom: bool = True
    overcommit: OvercommitSettings = OvercommitSettings()

    system_reserve_percent: float = Field(
        default=15.0,
        ge=0,
        lt=100,
        description="Share of every worker held back for the OS and kubelet",
    )
    min_workers: int = Field(default=3, ge=1)
    apps_per_infra_node: int = Field(default=25, gt=0)
    min_infra_nodes: int = Field(default=3, ge=0)
    max_infra_nodes: int = Field(default=10, ge=0)
    large_deployment_threshold: int = Field(
        default=50,
        ge=0,
        description="Production app count at which the larger infra floor applies",
    )
    min_prod_infra_large: int = Field(default=5, ge=0)
    large_cluster_worker_threshold: int = Field(
        default=100,
        ge=0,
        description="Clusters with more workers than this get 5 control plane nodes",
    )
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_infra_bounds(self) -> PolicySettings:
        if self.max_infra_nodes < self.min_infra_nodes:
            raise ValueError(
                f"max_infra_nodes={self.max_infra_nodes} is below "
                f"min_infra_nodes={self.min_infra_nodes}"
            )
        return self

    @property
    def reserve_factor(self) -> float:
        return 1 - self.system_reserve_percent / 100

    def headroom_for(self, environment: Environment) -> float:
        if not self.enable_headroom:
            return 0.0
        return self.headroom[environment]


###############################################################################
#                          Cluster workload and results                       #
###############################################################################


class AppCounts(BaseModel):
    small: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    large: int = Field(default=0, ge=0)
    xlarge: int = Field(default=0, ge=0)
    model_config = ConfigDict(frozen=True)

    def __getitem__(self, tier: AppTier) -> int:
        return getattr(self, AppTier(tier).value)

    def __add__(self, other: AppCounts) -> AppCounts:
        return AppCounts(
            **{tier.value: self[tier] + other[tier] for tier in AppTier},
        )

    @property
    def total(self) -> int:
        return self.small + self.medium + self.large + self.xlarge


class WorkloadSpec(BaseModel):
    """Applications to place, by environment and size class

    Environments without an entry in ``environment_apps`` use ``prod_apps``
    when they are production class and ``non_prod_apps`` otherwise.
    """

    technology: TechnologyProfile
    enabled_environments: Tuple[Environment, ...] = (
        Environment.dev,
        Environment.test,
        Environment.stage,
        Environment.prod,
    )
    prod_apps: AppCounts = AppCounts()
    non_prod_apps: AppCounts = AppCounts()
    environment_apps: Dict[Environment, AppCounts] = {}
    model_config = ConfigDict(frozen=True)

    @field_validator("enabled_environments")
    @classmethod
    def _order_environments(cls, value):
        if not value:
            raise ValueError("at least one environment must be enabled")
        return sort_environments(value)

    def apps_for(self, environment: Environment) -> AppCounts:
        if environment in self.environment_apps:
            return self.environment_apps[environment]
        return self.prod_apps if environment.is_prod else self.non_prod_apps


class EnvironmentSizing(ExcludeUnsetModel):
    """Node counts and resources of one cluster"""

    environment: Environment
    name: str
    is_prod: bool
    apps: int
    replicas: int
    pods: int
    cpu_required: float
    ram_required: float
    control_plane_nodes: int
    infra_nodes: int
    worker_nodes: int
    total_cpu: int
    total_ram: int
    total_disk: int

    @computed_field(return_type=int)  # type: ignore
    @property
    def total_nodes(self) -> int:
        return self.control_plane_nodes + self.infra_nodes + self.worker_nodes


class SizingTotals(ExcludeUnsetModel):
    nodes: int = 0
    control_plane_nodes: int = 0
    infra_nodes: int = 0
    worker_nodes: int = 0
    apps: int = 0
    pods: int = 0
    total_cpu: int = 0
    total_ram: int = 0
    total_disk: int = 0


class ClusterSizingResult(ExcludeUnsetModel):
    mode: ClusterMode
    distribution: str
    technology: str
    environments: List[EnvironmentSizing]

    @computed_field(return_type=SizingTotals)  # type: ignore
    @property
    def grand_total(self) -> SizingTotals:
        envs = self.environments
        return SizingTotals(
            nodes=sum(e.total_nodes for e in envs),
            control_plane_nodes=sum(e.control_plane_nodes for e in envs),
            infra_nodes=sum(e.infra_nodes for e in envs),
            worker_nodes=sum(e.worker_nodes for e in envs),
            apps=sum(e.apps for e in envs),
            pods=sum(e.pods for e in envs),
            total_cpu=sum(e.total_cpu for e in envs),
            total_ram=sum(e.total_ram for e in envs),
            total_disk=sum(e.total_disk for e in envs),
        )


###############################################################################
#                            VM fleet input and results                       #
###############################################################################


class VMRoleConfig(BaseModel):
    role: ServerRole
    size: AppTier = AppTier.medium
    instances: int = Field(default=1, ge=1, le=100)
    name: Optional[str] = None
    custom_cpu: Optional[int] = Field(default=None, ge=1)
    custom_ram: Optional[int] = Field(default=None, ge=1)
    disk_gb: int = Field(default=100, ge=0)
    model_config = ConfigDict(frozen=True)


class VMEnvironmentConfig(BaseModel):
    enabled: bool = True
    roles: Tuple[VMRoleConfig, ...] = ()
    ha_pattern: HAPattern = HAPattern.none
    dr_pattern: DRPattern = DRPattern.none
    load_balancer: LoadBalancerOption = LoadBalancerOption.none
    storage_gb: int = Field(default=100, ge=0, le=1_000_000)
    model_config = ConfigDict(frozen=True)


class VMWorkload(BaseModel):
    technology: TechnologyProfile
    enabled_environments: Tuple[Environment, ...] = tuple(Environment)
    system_overhead_percent: float = Field(default=15.0, ge=0, le=50)
    model_config = ConfigDict(frozen=True)

    @field_validator("enabled_environments")
    @classmethod
    def _order_environments(cls, value):
        return sort_environments(value)


class VMRoleSizing(ExcludeUnsetModel):
    role: ServerRole
    name: str
    size: AppTier
    base_instances: int
    total_instances: int
    cpu_per_instance: int
    ram_per_instance: int
    disk_per_instance: int

    @computed_field(return_type=int)  # type: ignore
    @property
    def total_cpu(self) -> int:
        return self.total_instances * self.cpu_per_instance

    @computed_field(return_type=int)  # type: ignore
    @property
    def total_ram(self) -> int:
        return self.total_instances * self.ram_per_instance

    @computed_field(return_type=int)  # type: ignore
    @property
    def total_disk(self) -> int:
        return self.total_instances * self.disk_per_instance


class VMEnvironmentSizing(ExcludeUnsetModel):
    environment: Environment
    name: str
    is_prod: bool
    ha_pattern: HAPattern
    dr_pattern: DRPattern
    load_balancer: LoadBalancerOption
    roles: List[VMRoleSizing]
    load_balancer_vms: int
    load_balancer_cpu: int
    load_balancer_ram: int
    storage_gb: int

    @computed_field(return_type=int)  # type: ignore
    @property
    def total_vms(self) -> int:
        return sum(r.total_instances for r in self.roles) + self.load_balancer_vms

    @computed_field(return_type=int)  # type: ignore
    @property
    def total_cpu(self) -> int:
        return sum(r.total_cpu for r in self.roles) + self.load_balancer_cpu

    @computed_field(return_type=int)  # type: ignore
    @property
    def total_ram(self) -> int:
        return sum(r.total_ram for r in self.roles) + self.load_balancer_ram

    @computed_field(return_type=int)  # type: ignore
    @property
    def total_disk(self) -> int:
        return sum(r.total_disk for r in self.roles) + self.storage_gb


class VMTotals(ExcludeUnsetModel):
    vms: int = 0
    load_balancer_vms: int = 0
    total_cpu: int = 0
    total_ram: int = 0
    total_disk: int = 0


class VMSizingResult(ExcludeUnsetModel):
    technology: str
    environments: List[VMEnvironmentSizing]

    @computed_field(return_type=VMTotals)  # type: ignore
    @property
    def grand_total(self) -> VMTotals:
        envs = self.environments
        return VMTotals(
            vms=sum(e.total_vms for e in envs),
            load_balancer_vms=sum(e.load_balancer_vms for e in envs),
            total_cpu=sum(e.total_cpu for e in envs),
            total_ram=sum(e.total_ram for e in envs),
            total_disk=sum(e.total_disk for e in envs),
        )


###############################################################################
#                          Pricing tables and estimates                       #
###############################################################################


class ComputeRates(BaseModel):
    cpu_per_hour: float = Field(ge=0)
    ram_gb_per_hour: float = Field(ge=0)
    managed_control_plane_per_hour: float = Field(default=0, ge=0)


class StorageRates(BaseModel):
    ssd_per_gb_month: float = Field(ge=0)
    registry_per_gb_month: float = Field(default=0, ge=0)


class NetworkRates(BaseModel):
    egress_per_gb: float = Field(ge=0)
    load_balancer_per_hour: float = Field(default=0, ge=0)
    nat_gateway_per_hour: float = Field(default=0, ge=0)


class LicenseRates(BaseModel):
    """Subscription price per node per year, keyed by distribution"""

    per_node_year: Dict[str, float] = {
        Distribution.openshift.value: 2500.0,
        Distribution.rosa.value: 2500.0,
        Distribution.aro.value: 2500.0,
        Distribution.rancher.value: 1000.0,
        Distribution.rke2.value: 1000.0,
        Distribution.tanzu.value: 1500.0,
        Distribution.charmed.value: 500.0,
    }

    def for_distribution(self, distribution: Optional[str]) -> float:
        if not distribution:
            return 0.0
        return self.per_node_year.get(str(distribution).lower(), 0.0)


class SupportRates(BaseModel):
    """Support plan price as a percentage of all other monthly costs"""

    percent: Dict[SupportTier, float] = {
        SupportTier.none: 0.0,
        SupportTier.basic: 0.0,
        SupportTier.developer: 3.0,
        SupportTier.business: 10.0,
        SupportTier.enterprise: 15.0,
    }

    def for_tier(self, tier: SupportTier) -> float:
        return self.percent.get(tier, 0.0)


class PricingModel(BaseModel):
    """Cloud rate table for one provider and region"""

    provider: CloudProvider
    region: str
    currency: str = "USD"
    source: str = "default"
    compute: ComputeRates
    storage: StorageRates
    network: NetworkRates
    licenses: LicenseRates = LicenseRates()
    support: SupportRates = SupportRates()


class OnPremHardware(BaseModel):
    server_cost: float = 15000
    cores_per_server: int = Field(default=64, gt=0)
    per_cpu_core: float = 200
    per_gb_ram: float = 15
    per_tb_ssd: float = 200


class OnPremDataCenter(BaseModel):
    rack_units_per_server: int = 2
    per_rack_unit_month: float = 100
    watts_per_server: float = 500
    per_kwh: float = 0.12
    pue: float = 1.6
    cooling_percent: float = 40

    def monthly_cost(self, servers: int) -> float:
        rack = servers * self.rack_units_per_server * self.per_rack_unit_month
        kwh = servers * self.watts_per_server * HOURS_PER_MONTH / 1000
        power = kwh * self.per_kwh * self.pue
        return rack + power + power * self.cooling_percent / 100


class OnPremLabor(BaseModel):
    devops_engineer_monthly: float = 12000
    sysadmin_monthly: float = 8000
    dba_monthly: float = 10000
    nodes_per_engineer: int = Field(default=50, gt=0)
    include_dba: bool = True

    def engineers(self, nodes: int) -> float:
        return max(1.0, nodes / self.nodes_per_engineer)

    def monthly_cost(self, nodes: int) -> float:
        engineers = self.engineers(nodes)
        sysadmins = max(1.0, engineers * 0.5)
        dba = self.dba_monthly if self.include_dba else 0.0
        return (
            engineers * self.devops_engineer_monthly
            + sysadmins * self.sysadmin_monthly
            + dba
        )


class OnPremPricing(BaseModel):
    """Owned hardware amortised over a refresh cycle"""

    hardware: OnPremHardware = OnPremHardware()
    data_center: OnPremDataCenter = OnPremDataCenter()
    labor: OnPremLabor = OnPremLabor()
    licenses: LicenseRates = LicenseRates()
    refresh_years: int = Field(default=4, gt=0)
    maintenance_percent: float = Field(default=10, ge=0)
    currency: str = "USD"

    @property
    def amortisation_months(self) -> int:
        return self.refresh_years * MONTHS_PER_YEAR

    def servers_for(self, cpu: float) -> int:
        return math.ceil(cpu / self.hardware.cores_per_server)

    def monthly_hardware_cost(self, servers: int) -> float:
        purchase = servers * self.hardware.server_cost
        maintenance = purchase * self.maintenance_percent / 100 / MONTHS_PER_YEAR
        return purchase / self.amortisation_months + maintenance


class CostOptions(BaseModel):
    include_compute: bool = True
    include_storage: bool = True
    include_network: bool = True
    include_licenses: bool = True
    include_support: bool = True
    include_managed_control_plane: bool = True

    headroom_percent: float = Field(
        default=0, ge=0, description="Extra billed cpu/ram on top of the sizing"
    )
    storage_gb_per_node: int = Field(default=100, ge=0)
    registry_gb: int = Field(default=50, ge=0)
    monthly_egress_gb: float = Field(default=100, ge=0)
    load_balancers: int = Field(default=1, ge=0)
    support_tier: SupportTier = SupportTier.business
    distribution: Optional[str] = None


class CostLineItem(ExcludeUnsetModel):
    description: str
    quantity: float
    unit_price: float
    unit: str

    @computed_field(return_type=float)  # type: ignore
    @property
    def total(self) -> float:
        return self.quantity * self.unit_price


class CategoryCost(ExcludeUnsetModel):
    category: CostCategory
    description: str
    monthly: float
    percentage: float = 0.0
    line_items: List[CostLineItem] = []


class EnvironmentCost(ExcludeUnsetModel):
    environment: Environment
    name: str
    monthly_cost: float
    percentage: float = 0.0
    nodes: int
    total_cpu: int
    total_ram: int
    total_disk: int


class CostEstimate(ExcludeUnsetModel):
    provider: CloudProvider
    region: str
    currency: str = "USD"
    source: str = ""
    categories: Dict[CostCategory, CategoryCost] = {}
    environments: List[EnvironmentCost] = []

    @computed_field(return_type=float)  # type: ignore
    @property
    def monthly_total(self) -> float:
        return sum(c.monthly for c in self.categories.values())

    @computed_field(return_type=float)  # type: ignore
    @property
    def yearly_total(self) -> float:
        return self.monthly_total * MONTHS_PER_YEAR

    @computed_field(return_type=float)  # type: ignore
    @property
    def three_year_tco(self) -> float:
        return self.tco(3)

    @computed_field(return_type=float)  # type: ignore
    @property
    def five_year_tco(self) -> float:
        return self.tco(5)

    def tco(self, years: int) -> float:
        return self.yearly_total * years

    def environment_cost(self, environment: Environment) -> Optional[EnvironmentCost]:
        for env_cost in self.environments:
            if env_cost.environment == environment:
                return env_cost
        return None


class CostComparison(ExcludeUnsetModel):
    estimates: List[CostEstimate] = []
    cheapest: Optional[str] = None
    most_expensive: Optional[str] = None
    potential_savings: Dict[str, float] = {}
    insights: List[str] = []


###############################################################################
#                               Growth projection                             #
###############################################################################


def _default_custom_rates() -> Dict[int, float]:
    return {1: 30.0, 2: 25.0, 3: 20.0, 4: 15.0, 5: 10.0}


class GrowthSettings(BaseModel):
    annual_growth_rate: float = Field(default=20.0, ge=0, description="Percent")
    projection_years: int = Field(default=3, ge=1, le=10)
    pattern: GrowthPattern = GrowthPattern.linear
    include_cost_projections: bool = True
    annual_cost_inflation: float = Field(default=3.0, ge=0, description="Percent")
    show_cluster_limit_warnings: bool = True
    custom_rates: Dict[int, float] = Field(default_factory=_default_custom_rates)
    model_config = ConfigDict(frozen=True)

    def rate_for_year(self, year: int) -> float:
        if self.pattern == GrowthPattern.custom:
            return self.custom_rates.get(year, self.annual_growth_rate)
        return self.annual_growth_rate


class TopologyLimits(BaseModel):
    distribution: Optional[Distribution] = None
    max_nodes: int = Field(default=2000, gt=0)
    max_pods_per_node: int = Field(default=110, gt=0)
    max_total_pods: int = Field(default=150000, gt=0)
    model_config = ConfigDict(frozen=True)


class EnvironmentProjection(ExcludeUnsetModel):
    environment: Environment
    apps: int
    nodes: int
    cpu: int
    ram: int
    monthly_cost: float


class ProjectionPoint(ExcludeUnsetModel):
    year: int
    label: str
    apps: int
    nodes: int
    workers: int = 0
    cpu: int
    ram: int
    storage: int
    monthly_cost: float
    growth_from_previous: float = 0.0
    cumulative_growth: float = 0.0
    environments: List[EnvironmentProjection] = []
    model_config = ConfigDict(frozen=True)

    @computed_field(return_type=float)  # type: ignore
    @property
    def yearly_cost(self) -> float:
        return self.monthly_cost * MONTHS_PER_YEAR


class CapacityWarning(ExcludeUnsetModel):
    severity: WarningSeverity
    year: int
    message: str
    resource: str = "nodes"
    current_value: int
    projected_value: int
    limit: int
    percent_of_limit: float


class ScalingRecommendation(ExcludeUnsetModel):
    type: RecommendationType
    year: int
    priority: int
    title: str
    description: str
    estimated_cost_impact: Optional[float] = None


class ProjectionSummary(ExcludeUnsetModel):
    app_growth: int = 0
    app_growth_percent: float = 0.0
    node_growth: int = 0
    node_growth_percent: float = 0.0
    total_cost_over_period: float = 0.0
    average_yearly_cost: float = 0.0
    cost_increase: float = 0.0
    cost_increase_percent: float = 0.0
    major_scaling_year: Optional[int] = None
    warning_count: int = 0
    critical_warning_count: int = 0


class GrowthProjection(ExcludeUnsetModel):
    """Year by year forecast; ``points[0]`` is the unmodified baseline"""

    settings: GrowthSettings
    points: List[ProjectionPoint]
    warnings: List[CapacityWarning] = []
    recommendations: List[ScalingRecommendation] = []
    summary: ProjectionSummary = ProjectionSummary()

    @property
    def baseline(self) -> ProjectionPoint:
        return self.points[0]

    @property
    def final(self) -> ProjectionPoint:
        return self.points[-1]


class SizingReport(ExcludeUnsetModel):
    """Sizing with its cost, optional price comparison and growth forecast"""

    sizing: Union[ClusterSizingResult, VMSizingResult]
    cost: CostEstimate
    comparison: Optional[CostComparison] = None
    growth: GrowthProjection
