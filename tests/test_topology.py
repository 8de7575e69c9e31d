import pytest

from infra_sizing.errors import InvalidInput
from infra_sizing.interface import AppCounts
from infra_sizing.interface import ClusterMode
from infra_sizing.interface import Environment
from infra_sizing.interface import PolicySettings
from infra_sizing.interface import ReplicaSettings
from infra_sizing.models.topology import calculate_cluster_sizing
from infra_sizing.models.topology import MODE_SIZERS
from infra_sizing.models.topology import SHARED_CLUSTER_NAME
from tests.util import managed_topology
from tests.util import self_managed_topology
from tests.util import workload

DEV_AND_PROD = workload(
    prod=AppCounts(medium=70),
    non_prod=AppCounts(medium=10),
    environments=(Environment.dev, Environment.prod),
)


def test_every_mode_has_a_sizer():
    assert set(MODE_SIZERS) == set(ClusterMode)


def test_multi_sizes_each_environment_in_order():
    result = calculate_cluster_sizing(DEV_AND_PROD, managed_topology())
    assert result.mode == ClusterMode.multi
    assert [e.environment for e in result.environments] == [
        Environment.dev,
        Environment.prod,
    ]
    assert [e.name for e in result.environments] == ["Development", "Production"]
    # dev: 3 floor workers + 33% headroom, prod: 16 workers + 37.5% headroom
    assert [e.worker_nodes for e in result.environments] == [4, 22]
    assert result.grand_total.worker_nodes == 26
    assert result.grand_total.apps == 80


def test_shared_cluster_equals_summed_workload():
    """Dev (10) + Prod (70) in one cluster is sized like 80 production apps

    cpu = 80 * 0.5 * 3 = 120 -> ceil(120 / 6.8) = 18 -> 18 * 1.375 = 25
    which is not the 4 + 22 workers of two separate clusters.
    """
    topology = managed_topology()
    shared = calculate_cluster_sizing(
        DEV_AND_PROD, topology, cluster_mode=ClusterMode.shared
    )
    summed = calculate_cluster_sizing(workload(prod=AppCounts(medium=80)), topology)

    assert len(shared.environments) == 1
    cluster = shared.environments[0]
    single = summed.environments[0]
    assert cluster.name == SHARED_CLUSTER_NAME
    assert cluster.environment == Environment.prod
    assert cluster.is_prod
    assert cluster.apps == 80
    assert cluster.replicas == 3
    for field in (
        "pods",
        "cpu_required",
        "ram_required",
        "control_plane_nodes",
        "infra_nodes",
        "worker_nodes",
        "total_cpu",
        "total_ram",
        "total_disk",
    ):
        assert getattr(cluster, field) == getattr(single, field), field
    assert cluster.worker_nodes == 25


def test_shared_cluster_uses_production_replicas():
    policy = PolicySettings(replicas=ReplicaSettings(dev=1, prod=2))
    shared = calculate_cluster_sizing(
        DEV_AND_PROD, managed_topology(), policy, ClusterMode.shared
    )
    assert shared.environments[0].pods == 80 * 2


class TestPerEnvironment:
    def test_selected_environment_policy(self):
        result = calculate_cluster_sizing(
            DEV_AND_PROD,
            self_managed_topology(),
            cluster_mode=ClusterMode.per_environment,
            selected_environment=Environment.dev,
        )
        assert len(result.environments) == 1
        dev = result.environments[0]
        assert dev.environment == Environment.dev
        assert dev.name == "Development Cluster"
        assert not dev.is_prod
        assert dev.apps == 10
        assert dev.replicas == 1
        # 3 floor workers with dev headroom of 33%
        assert dev.worker_nodes == 4

    def test_standalone_cluster_uses_production_shapes(self):
        """3 production control planes at 4 vCPU and 4 workers at 8 vCPU"""
        result = calculate_cluster_sizing(
            DEV_AND_PROD,
            self_managed_topology(),
            cluster_mode=ClusterMode.per_environment,
            selected_environment=Environment.dev,
        )
        dev = result.environments[0]
        assert dev.control_plane_nodes == 3
        assert dev.total_cpu == 3 * 4 + 4 * 8
        assert dev.total_ram == 3 * 16 + 4 * 32

    def test_defaults_to_production(self):
        result = calculate_cluster_sizing(
            DEV_AND_PROD, managed_topology(), cluster_mode="per_environment"
        )
        prod = result.environments[0]
        assert prod.environment == Environment.prod
        assert prod.name == "Production Cluster"
        assert prod.worker_nodes == 22


def test_invalid_mode():
    with pytest.raises(InvalidInput, match="cluster_mode=hybrid"):
        calculate_cluster_sizing(
            DEV_AND_PROD, managed_topology(), cluster_mode="hybrid"
        )


def test_invalid_selected_environment():
    with pytest.raises(InvalidInput, match="selected_environment=qa"):
        calculate_cluster_sizing(
            DEV_AND_PROD,
            managed_topology(),
            cluster_mode=ClusterMode.per_environment,
            selected_environment="qa",
        )


def test_environments_must_not_be_empty():
    with pytest.raises(ValueError):
        workload(environments=())
