import logging
from typing import Callable
from typing import Dict
from typing import List

from infra_sizing.errors import InvalidInput
from infra_sizing.interface import ClusterMode
from infra_sizing.interface import ClusterSizingResult
from infra_sizing.interface import Environment
from infra_sizing.interface import EnvironmentSizing
from infra_sizing.interface import PolicySettings
from infra_sizing.interface import TopologyCapabilities
from infra_sizing.interface import WorkloadSpec
from infra_sizing.models.cluster import app_resources
from infra_sizing.models.cluster import size_cluster
from infra_sizing.models.cluster import size_environment

logger = logging.getLogger(__name__)

SHARED_CLUSTER_NAME = "Shared Cluster"

ModeSizer = Callable[
    [WorkloadSpec, TopologyCapabilities, PolicySettings, Environment],
    List[EnvironmentSizing],
]


def _isolated_clusters(
    workload: WorkloadSpec,
    topology: TopologyCapabilities,
    policy: PolicySettings,
    selected: Environment,
) -> List[EnvironmentSizing]:
    return [
        size_environment(
            env, workload.apps_for(env), workload.technology, topology, policy
        )
        for env in workload.enabled_environments
    ]


def _shared_cluster(
    workload: WorkloadSpec,
    topology: TopologyCapabilities,
    policy: PolicySettings,
    selected: Environment,
) -> List[EnvironmentSizing]:
    # One cluster for everyone: production replicas, overcommit, headroom and
    # node shapes apply to every environment's apps.
    replicas = policy.replicas[Environment.prod]
    cpu_required = 0.0
    ram_required = 0.0
    total_apps = 0
    for env in workload.enabled_environments:
        apps = workload.apps_for(env)
        cpu, ram = app_resources(apps, workload.technology, replicas)
        cpu_required += cpu
        ram_required += ram
        total_apps += apps.total

    return [
        size_cluster(
            environment=Environment.prod,
            name=SHARED_CLUSTER_NAME,
            is_prod=True,
            total_apps=total_apps,
            replicas=replicas,
            cpu_required=cpu_required,
            ram_required=ram_required,
            headroom_percent=policy.headroom_for(Environment.prod),
            overcommit=policy.overcommit.prod,
            topology=topology,
            policy=policy,
            unified_specs=True,
        )
    ]


def _single_environment_cluster(
    workload: WorkloadSpec,
    topology: TopologyCapabilities,
    policy: PolicySettings,
    selected: Environment,
) -> List[EnvironmentSizing]:
    # The selected environment keeps its own apps, replicas and headroom but
    # a standalone cluster is always built from production shapes and
    # production overcommit.
    apps = workload.apps_for(selected)
    replicas = policy.replicas[selected]
    cpu_required, ram_required = app_resources(apps, workload.technology, replicas)
    return [
        size_cluster(
            environment=selected,
            name=f"{selected.display_name} Cluster",
            is_prod=selected.is_prod,
            total_apps=apps.total,
            replicas=replicas,
            cpu_required=cpu_required,
            ram_required=ram_required,
            headroom_percent=policy.headroom_for(selected),
            overcommit=policy.overcommit.prod,
            topology=topology,
            policy=policy,
            unified_specs=True,
        )
    ]


MODE_SIZERS: Dict[ClusterMode, ModeSizer] = {
    ClusterMode.multi: _isolated_clusters,
    ClusterMode.shared: _shared_cluster,
    ClusterMode.per_environment: _single_environment_cluster,
}


def calculate_cluster_sizing(
    workload: WorkloadSpec,
    topology: TopologyCapabilities,
    policy: PolicySettings = PolicySettings(),
    cluster_mode: ClusterMode = ClusterMode.multi,
    selected_environment: Environment = Environment.prod,
) -> ClusterSizingResult:
    """Size every cluster ``cluster_mode`` calls for

    ``selected_environment`` only matters for ``ClusterMode.per_environment``.
    """
    try:
        sizer = MODE_SIZERS[ClusterMode(cluster_mode)]
    except (KeyError, ValueError) as exc:
        raise InvalidInput(
            f"cluster_mode={cluster_mode} is not one of "
            f"{[m.value for m in ClusterMode]}"
        ) from exc
    try:
        selected = Environment(selected_environment)
    except ValueError as exc:
        raise InvalidInput(
            f"selected_environment={selected_environment} is not one of "
            f"{[e.value for e in Environment]}"
        ) from exc

    environments = sizer(workload, topology, policy, selected)
    logger.debug(
        "Sized %d cluster(s) for %s on %s in %s mode",
        len(environments),
        workload.technology.name,
        topology.name,
        cluster_mode,
    )
    return ClusterSizingResult(
        mode=cluster_mode,
        distribution=topology.name,
        technology=workload.technology.name,
        environments=environments,
    )
