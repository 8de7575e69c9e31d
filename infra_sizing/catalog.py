"""Read-only lookup tables: distributions, technologies and cluster limits.

Every lookup goes through the ``*_for`` helpers below which raise
``UnknownCatalogKey`` rather than quietly substituting another entry. Callers
that want different node shapes build their own ``TopologyCapabilities`` and
pass it to the calculators directly.
"""

import logging
from typing import Dict
from typing import Mapping
from typing import Type
from typing import TypeVar
from typing import Union

from infra_sizing.errors import UnknownCatalogKey
from infra_sizing.interface import AppTier
from infra_sizing.interface import Distribution
from infra_sizing.interface import NodeSpec
from infra_sizing.interface import ServerRole
from infra_sizing.interface import Technology
from infra_sizing.interface import TechnologyProfile
from infra_sizing.interface import TierFootprint
from infra_sizing.interface import TopologyCapabilities
from infra_sizing.interface import TopologyLimits
from infra_sizing.interface import VMRoleTemplate
from infra_sizing.interface import ZERO_NODE

logger = logging.getLogger(__name__)

E = TypeVar("E", Distribution, Technology)


def _openshift(name: str, vendor: str, managed: bool) -> TopologyCapabilities:
    control_plane = ZERO_NODE if managed else NodeSpec(cpu=8, ram=32, disk=200)
    return TopologyCapabilities(
        name=name,
        vendor=vendor,
        has_managed_control_plane=managed,
        has_infra_nodes=True,
        prod_control_plane=control_plane,
        non_prod_control_plane=(
            ZERO_NODE if managed else NodeSpec(cpu=8, ram=32, disk=100)
        ),
        prod_worker=NodeSpec(cpu=16, ram=64, disk=200),
        non_prod_worker=NodeSpec(cpu=8, ram=32, disk=100),
        prod_infra=NodeSpec(cpu=8, ram=32, disk=500),
        non_prod_infra=NodeSpec(cpu=8, ram=32, disk=200),
    )


def _self_managed(name: str, vendor: str) -> TopologyCapabilities:
    return TopologyCapabilities(
        name=name,
        vendor=vendor,
        prod_control_plane=NodeSpec(cpu=4, ram=16, disk=100),
        non_prod_control_plane=NodeSpec(cpu=2, ram=8, disk=50),
        prod_worker=NodeSpec(cpu=8, ram=32, disk=100),
        non_prod_worker=NodeSpec(cpu=4, ram=16, disk=50),
    )


def _lightweight(name: str, vendor: str) -> TopologyCapabilities:
    return TopologyCapabilities(
        name=name,
        vendor=vendor,
        prod_control_plane=NodeSpec(cpu=2, ram=4, disk=50),
        non_prod_control_plane=NodeSpec(cpu=1, ram=2, disk=25),
        prod_worker=NodeSpec(cpu=4, ram=8, disk=50),
        non_prod_worker=NodeSpec(cpu=2, ram=4, disk=25),
    )


def _managed(name: str, vendor: str) -> TopologyCapabilities:
    return TopologyCapabilities(
        name=name,
        vendor=vendor,
        has_managed_control_plane=True,
        prod_worker=NodeSpec(cpu=8, ram=32, disk=100),
        non_prod_worker=NodeSpec(cpu=4, ram=16, disk=50),
    )


DISTRIBUTIONS: Dict[Distribution, TopologyCapabilities] = {
    Distribution.openshift: _openshift("OpenShift (On-Prem)", "Red Hat", False),
    Distribution.rosa: _openshift("OpenShift ROSA (AWS)", "Red Hat / AWS", True),
    Distribution.aro: _openshift("OpenShift ARO (Azure)", "Red Hat / Microsoft", True),
    Distribution.kubernetes: _self_managed("Kubernetes (Vanilla)", "CNCF"),
    Distribution.rancher: _self_managed("Rancher", "SUSE"),
    Distribution.rke2: _self_managed("RKE2", "SUSE"),
    Distribution.tanzu: _self_managed("Tanzu", "Broadcom"),
    Distribution.charmed: _self_managed("Charmed Kubernetes", "Canonical"),
    Distribution.k3s: _lightweight("K3s", "SUSE"),
    Distribution.microk8s: _lightweight("MicroK8s", "Canonical"),
    Distribution.eks: _managed("Amazon EKS", "AWS"),
    Distribution.aks: _managed("Azure AKS", "Microsoft"),
    Distribution.gke: _managed("Google GKE", "Google"),
    Distribution.oke: _managed("Oracle OKE", "Oracle"),
}

DEFAULT_NODE_LIMIT = 2000

NODE_LIMITS: Dict[Distribution, int] = {
    Distribution.eks: 5000,
    Distribution.aks: 5000,
    Distribution.gke: 15000,
    Distribution.oke: 2000,
    Distribution.openshift: 2000,
    Distribution.rosa: 5000,
    Distribution.aro: 5000,
    Distribution.rancher: 2000,
    Distribution.rke2: 2000,
    Distribution.tanzu: 2000,
    Distribution.k3s: 500,
    Distribution.microk8s: 200,
    Distribution.charmed: 1000,
    Distribution.kubernetes: 5000,
}

PODS_PER_NODE: Dict[Distribution, int] = {
    Distribution.aks: 250,
    Distribution.openshift: 250,
    Distribution.rosa: 250,
    Distribution.aro: 250,
}

TOTAL_PODS: Dict[Distribution, int] = {
    Distribution.k3s: 50000,
    Distribution.microk8s: 20000,
    Distribution.charmed: 100000,
}


def _tiers(*specs) -> Dict[AppTier, TierFootprint]:
    return {
        tier: TierFootprint(cpu=cpu, ram=ram)
        for tier, (cpu, ram) in zip(AppTier, specs)
    }


def _role(role: ServerRole, name: str, size: AppTier, **kwargs) -> VMRoleTemplate:
    return VMRoleTemplate(role=role, name=name, default_size=size, **kwargs)


TECHNOLOGIES: Dict[Technology, TechnologyProfile] = {
    Technology.dotnet: TechnologyProfile(
        name=".NET",
        tiers=_tiers((0.25, 0.5), (0.5, 1), (1, 2), (2, 4)),
        role_templates=(
            _role(ServerRole.web, "IIS Web Server", AppTier.medium, required=True),
            _role(
                ServerRole.database,
                "SQL Server",
                AppTier.large,
                default_disk_gb=500,
                required=True,
            ),
            _role(ServerRole.cache, "Cache Server", AppTier.small, default_disk_gb=50),
        ),
    ),
    Technology.java: TechnologyProfile(
        name="Java",
        tiers=_tiers((0.5, 1), (1, 2), (2, 4), (4, 8)),
        vm_memory_multiplier=1.5,
        role_templates=(
            _role(ServerRole.web, "Web Server", AppTier.small, default_disk_gb=50),
            _role(ServerRole.app, "Application Server", AppTier.large, required=True),
            _role(
                ServerRole.database,
                "Database Server",
                AppTier.medium,
                default_disk_gb=500,
                required=True,
            ),
            _role(ServerRole.cache, "Cache Server", AppTier.small, default_disk_gb=50),
        ),
    ),
    Technology.nodejs: TechnologyProfile(
        name="Node.js",
        tiers=_tiers((0.25, 1), (0.5, 1), (1, 2), (2, 4)),
        role_templates=(
            _role(
                ServerRole.web, "Web/Proxy Server", AppTier.small, default_disk_gb=50
            ),
            _role(ServerRole.app, "Application Server", AppTier.medium, required=True),
            _role(
                ServerRole.database,
                "Database Server",
                AppTier.medium,
                default_disk_gb=500,
                required=True,
            ),
            _role(ServerRole.cache, "Cache Server", AppTier.small, default_disk_gb=50),
        ),
    ),
    Technology.python: TechnologyProfile(
        name="Python",
        tiers=_tiers((0.25, 1), (0.5, 1), (1, 2), (2, 4)),
        role_templates=(
            _role(ServerRole.web, "Web Server", AppTier.small, default_disk_gb=50),
            _role(ServerRole.app, "Application Server", AppTier.medium, required=True),
            _role(
                ServerRole.database,
                "Database Server",
                AppTier.medium,
                default_disk_gb=500,
                required=True,
            ),
            _role(ServerRole.cache, "Cache Server", AppTier.small, default_disk_gb=50),
        ),
    ),
    Technology.go: TechnologyProfile(
        name="Go",
        tiers=_tiers((0.125, 0.25), (0.25, 0.5), (0.5, 1), (1, 2)),
        role_templates=(
            _role(
                ServerRole.app,
                "Application Server",
                AppTier.medium,
                default_disk_gb=50,
                required=True,
            ),
            _role(
                ServerRole.database,
                "Database Server",
                AppTier.medium,
                default_disk_gb=500,
                required=True,
            ),
            _role(ServerRole.cache, "Cache Server", AppTier.small, default_disk_gb=50),
        ),
    ),
    Technology.mendix: TechnologyProfile(
        name="Mendix",
        tiers=_tiers((1, 2), (2, 4), (4, 8), (8, 16)),
        vm_memory_multiplier=1.5,
        role_templates=(
            _role(
                ServerRole.app,
                "Mendix Application Server",
                AppTier.medium,
                required=True,
            ),
            _role(
                ServerRole.database,
                "Database Server",
                AppTier.medium,
                default_disk_gb=500,
                required=True,
            ),
            _role(
                ServerRole.storage,
                "File Storage Server",
                AppTier.small,
                default_disk_gb=1000,
            ),
        ),
    ),
    Technology.outsystems: TechnologyProfile(
        name="OutSystems",
        tiers=_tiers((1, 2), (2, 4), (4, 8), (8, 16)),
        vm_memory_multiplier=1.5,
        role_templates=(
            _role(
                ServerRole.app,
                "Deployment Controller",
                AppTier.large,
                default_disk_gb=200,
                required=True,
            ),
            _role(
                ServerRole.web,
                "Front-End Server",
                AppTier.medium,
                default_instances=2,
                required=True,
            ),
            _role(
                ServerRole.database,
                "Database Server",
                AppTier.large,
                default_disk_gb=500,
                required=True,
            ),
        ),
    ),
}


def resolve(kind: str, table: Mapping[E, object], key, enum_type: Type[E]) -> E:
    try:
        resolved = enum_type(str(key).lower())
    except ValueError as exc:
        raise UnknownCatalogKey(kind, key, table.keys()) from exc
    if resolved not in table:
        raise UnknownCatalogKey(kind, key, table.keys())
    return resolved


def distribution_for(distribution: Union[str, Distribution]) -> TopologyCapabilities:
    key = resolve("distribution", DISTRIBUTIONS, distribution, Distribution)
    logger.debug("Resolved distribution=%s to %s", key, DISTRIBUTIONS[key].name)
    return DISTRIBUTIONS[key]


def technology_for(technology: Union[str, Technology]) -> TechnologyProfile:
    return TECHNOLOGIES[resolve("technology", TECHNOLOGIES, technology, Technology)]


def limits_for(distribution: Union[str, Distribution, None]) -> TopologyLimits:
    """Scaling ceilings of a distribution, the generic defaults when unnamed"""
    if distribution is None:
        return TopologyLimits()
    key = resolve("distribution", DISTRIBUTIONS, distribution, Distribution)
    return TopologyLimits(
        distribution=key,
        max_nodes=NODE_LIMITS.get(key, DEFAULT_NODE_LIMIT),
        max_pods_per_node=PODS_PER_NODE.get(key, 110),
        max_total_pods=TOTAL_PODS.get(key, 150000),
    )
