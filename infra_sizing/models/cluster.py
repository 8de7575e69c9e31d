"""Node counts and aggregate resources for a single cluster.

Worker count is the larger of what CPU and what RAM demand, after the
system reserve and overcommit are applied to the worker shape, and never
below the configured floor. Headroom is added on top of that. Control plane
and infrastructure nodes follow from the worker count and the number of
applications.
"""

import logging
from typing import Tuple

from infra_sizing.errors import InvalidInput
from infra_sizing.interface import AppCounts
from infra_sizing.interface import AppTier
from infra_sizing.interface import Environment
from infra_sizing.interface import EnvironmentSizing
from infra_sizing.interface import NodeSpec
from infra_sizing.interface import Overcommit
from infra_sizing.interface import PolicySettings
from infra_sizing.interface import TechnologyProfile
from infra_sizing.interface import TopologyCapabilities
from infra_sizing.models.common import apply_headroom
from infra_sizing.models.common import nodes_for

logger = logging.getLogger(__name__)

HA_CONTROL_PLANE_NODES = 3
LARGE_CONTROL_PLANE_NODES = 5


def app_resources(
    apps: AppCounts, technology: TechnologyProfile, replicas: int
) -> Tuple[float, float]:
    """CPU cores and RAM GB requested by every replica of every app"""
    if replicas < 1:
        raise InvalidInput(f"replicas must be at least 1, got {replicas}")
    cpu = 0.0
    ram = 0.0
    for tier in AppTier:
        count = apps[tier]
        if count == 0:
            continue
        footprint = technology.footprint(tier)
        cpu += count * footprint.cpu * replicas
        ram += count * footprint.ram * replicas
    return cpu, ram


def worker_nodes(
    cpu_required: float,
    ram_required: float,
    worker: NodeSpec,
    overcommit: Overcommit,
    policy: PolicySettings,
) -> int:
    cpu_per_worker = worker.cpu * policy.reserve_factor * overcommit.cpu
    ram_per_worker = worker.ram * policy.reserve_factor * overcommit.memory
    return max(
        nodes_for(cpu_required, cpu_per_worker, "cpu"),
        nodes_for(ram_required, ram_per_worker, "ram"),
        policy.min_workers,
    )


def control_plane_nodes(
    workers: int, managed_control_plane: bool, policy: PolicySettings
) -> int:
    if managed_control_plane:
        return 0
    if workers > policy.large_cluster_worker_threshold:
        return LARGE_CONTROL_PLANE_NODES
    return HA_CONTROL_PLANE_NODES


def infra_nodes(
    total_apps: int, is_prod: bool, has_infra_nodes: bool, policy: PolicySettings
) -> int:
    if not has_infra_nodes:
        return 0
    count = max(policy.min_infra_nodes, -(-total_apps // policy.apps_per_infra_node))
    if (
        is_prod
        and total_apps >= policy.large_deployment_threshold
        and count < policy.min_prod_infra_large
    ):
        count = policy.min_prod_infra_large
    return min(count, policy.max_infra_nodes)


def size_cluster(  # pylint: disable=too-many-arguments
    *,
    environment: Environment,
    name: str,
    is_prod: bool,
    total_apps: int,
    replicas: int,
    cpu_required: float,
    ram_required: float,
    headroom_percent: float,
    overcommit: Overcommit,
    topology: TopologyCapabilities,
    policy: PolicySettings,
    unified_specs: bool = False,
) -> EnvironmentSizing:
    """Size one cluster from its aggregate resource demand

    Workers always use the production worker shape. Control plane and infra
    nodes use the production or non-production shapes by ``is_prod`` unless
    ``unified_specs`` is set, in which case every role uses the production
    shape.
    """
    workers = worker_nodes(
        cpu_required, ram_required, topology.prod_worker, overcommit, policy
    )
    workers = apply_headroom(workers, headroom_percent)
    control_plane = control_plane_nodes(
        workers, topology.has_managed_control_plane, policy
    )
    infra = infra_nodes(total_apps, is_prod, topology.has_infra_nodes, policy)

    shapes_are_prod = unified_specs or is_prod
    resources = (
        topology.control_plane_for(shapes_are_prod).scale(control_plane)
        + topology.infra_for(shapes_are_prod).scale(infra)
        + topology.prod_worker.scale(workers)
    )
    logger.debug(
        "Sized %s: apps=%d cpu=%.2f ram=%.2f -> control_plane=%d infra=%d "
        "workers=%d (headroom=%s%%)",
        name,
        total_apps,
        cpu_required,
        ram_required,
        control_plane,
        infra,
        workers,
        headroom_percent,
    )
    return EnvironmentSizing(
        environment=environment,
        name=name,
        is_prod=is_prod,
        apps=total_apps,
        replicas=replicas,
        pods=total_apps * replicas,
        cpu_required=cpu_required,
        ram_required=ram_required,
        control_plane_nodes=control_plane,
        infra_nodes=infra,
        worker_nodes=workers,
        total_cpu=resources.cpu,
        total_ram=resources.ram,
        total_disk=resources.disk,
    )


def size_environment(
    environment: Environment,
    apps: AppCounts,
    technology: TechnologyProfile,
    topology: TopologyCapabilities,
    policy: PolicySettings,
) -> EnvironmentSizing:
    """Size the isolated cluster of one environment with its own policy"""
    replicas = policy.replicas[environment]
    cpu, ram = app_resources(apps, technology, replicas)
    return size_cluster(
        environment=environment,
        name=environment.display_name,
        is_prod=environment.is_prod,
        total_apps=apps.total,
        replicas=replicas,
        cpu_required=cpu,
        ram_required=ram,
        headroom_percent=policy.headroom_for(environment),
        overcommit=policy.overcommit.for_environment(environment),
        topology=topology,
        policy=policy,
    )
