import math

import pytest

from infra_sizing import catalog
from infra_sizing.errors import ArithmeticDegeneracy
from infra_sizing.errors import InvalidInput
from infra_sizing.errors import UnknownCatalogKey
from infra_sizing.interface import AppCounts
from infra_sizing.interface import AppTier
from infra_sizing.interface import Distribution
from infra_sizing.interface import Environment
from infra_sizing.interface import NodeSpec
from infra_sizing.interface import Overcommit
from infra_sizing.interface import OvercommitSettings
from infra_sizing.interface import PolicySettings
from infra_sizing.interface import TechnologyProfile
from infra_sizing.interface import TierFootprint
from infra_sizing.models.cluster import app_resources
from infra_sizing.models.cluster import control_plane_nodes
from infra_sizing.models.cluster import infra_nodes
from infra_sizing.models.cluster import worker_nodes
from infra_sizing.models.common import apply_headroom
from infra_sizing.models.common import nodes_for
from infra_sizing.models.topology import calculate_cluster_sizing
from tests.util import managed_topology
from tests.util import no_headroom
from tests.util import self_managed_topology
from tests.util import technology
from tests.util import workload
from tests.util import zero_headroom


def test_managed_control_plane_scenario():
    """70 medium apps at 0.5 vCPU / 1 GB with 3 replicas on 8/32 workers

    cpu = 70 * 0.5 * 3 = 105, per worker 8 * 0.85 * 1.0 = 6.8 -> 16 workers
    ram = 70 * 1.0 * 3 = 210, per worker 32 * 0.85 * 1.0 = 27.2 -> 8 workers
    """
    result = calculate_cluster_sizing(
        workload(prod=AppCounts(medium=70)), managed_topology(), no_headroom()
    )
    assert len(result.environments) == 1
    prod = result.environments[0]

    assert prod.control_plane_nodes == 0
    assert prod.infra_nodes == 0
    assert prod.worker_nodes == math.ceil(70 * 0.5 * 3 / (8 * 0.85 * 1.0))
    assert prod.worker_nodes == 16
    assert prod.pods == 210
    assert prod.total_cpu == 16 * 8
    assert prod.total_ram == 16 * 32
    assert prod.total_disk == 16 * 100


def test_production_headroom_is_added_on_top():
    result = calculate_cluster_sizing(
        workload(prod=AppCounts(medium=70)), managed_topology()
    )
    # 16 workers * 1.375 = 22
    assert result.environments[0].worker_nodes == 22


def test_openshift_infra_nodes_for_large_production():
    topology = catalog.distribution_for(Distribution.openshift)
    result = calculate_cluster_sizing(
        workload(prod=AppCounts(medium=50)), topology, no_headroom()
    )
    prod = result.environments[0]
    # max(3, ceil(50 / 25)) = 3, raised to the large production floor
    assert prod.infra_nodes == 5
    assert prod.control_plane_nodes == 3


class TestInfraNodes:
    policy = PolicySettings()

    def test_floor(self):
        assert infra_nodes(10, True, True, self.policy) == 3
        assert infra_nodes(0, False, True, self.policy) == 3

    def test_large_production_floor(self):
        assert infra_nodes(50, True, True, self.policy) == 5
        assert infra_nodes(49, True, True, self.policy) == 3
        # Non production never gets the large floor
        assert infra_nodes(50, False, True, self.policy) == 3

    def test_scales_with_apps_up_to_ceiling(self):
        assert infra_nodes(150, True, True, self.policy) == 6
        assert infra_nodes(1000, True, True, self.policy) == 10

    def test_unsupported(self):
        assert infra_nodes(1000, True, False, self.policy) == 0


class TestControlPlane:
    policy = PolicySettings()

    def test_counts(self):
        assert control_plane_nodes(3, False, self.policy) == 3
        assert control_plane_nodes(100, False, self.policy) == 3
        assert control_plane_nodes(101, False, self.policy) == 5
        assert control_plane_nodes(1000, True, self.policy) == 0

    def test_large_cluster_gets_five(self):
        """500 medium apps need ceil(750 / 6.8) = 111 workers"""
        result = calculate_cluster_sizing(
            workload(prod=AppCounts(medium=500)),
            self_managed_topology(),
            no_headroom(),
        )
        prod = result.environments[0]
        assert prod.worker_nodes == 111
        assert prod.control_plane_nodes == 5


class TestWorkers:
    worker = NodeSpec(cpu=8, ram=32, disk=100)

    def test_floor_without_apps(self):
        assert worker_nodes(0, 0, self.worker, Overcommit(), PolicySettings()) == 3

    def test_floor_is_kept_through_headroom(self):
        result = calculate_cluster_sizing(
            workload(environments=tuple(Environment)), managed_topology()
        )
        for env in result.environments:
            assert env.worker_nodes >= 3
            assert env.control_plane_nodes in (0, 3, 5)

    def test_ram_bound(self):
        # 10 GB per replica, 3 replicas, 20 apps: 600 GB / 27.2 = 23 workers
        tech = technology(medium=(0.1, 10.0))
        result = calculate_cluster_sizing(
            workload(prod=AppCounts(medium=20), tech=tech),
            managed_topology(),
            no_headroom(),
        )
        assert result.environments[0].worker_nodes == 23

    def test_cpu_overcommit(self):
        """cpu per worker 8 * 0.85 * 2 = 13.6, ceil(105 / 13.6) = 8, ram also 8"""
        policy = PolicySettings(
            enable_headroom=False,
            overcommit=OvercommitSettings(prod=Overcommit(cpu=2.0)),
        )
        result = calculate_cluster_sizing(
            workload(prod=AppCounts(medium=70)), managed_topology(), policy
        )
        assert result.environments[0].worker_nodes == 8

    @pytest.mark.parametrize("tier", list(AppTier))
    def test_monotonic_in_app_count(self, tier):
        previous = 0
        for count in range(0, 400, 7):
            apps = AppCounts(**{tier.value: count})
            result = calculate_cluster_sizing(
                workload(prod=apps), self_managed_topology()
            )
            workers = result.environments[0].worker_nodes
            assert workers >= previous
            previous = workers

    def test_zero_headroom_matches_disabled_headroom(self):
        demand = workload(
            prod=AppCounts(small=30, medium=40, large=7),
            non_prod=AppCounts(medium=25, xlarge=3),
            environments=(Environment.dev, Environment.stage, Environment.prod),
        )
        topology = self_managed_topology()
        zero = calculate_cluster_sizing(demand, topology, zero_headroom())
        disabled = calculate_cluster_sizing(demand, topology, no_headroom())
        assert [e.worker_nodes for e in zero.environments] == [
            e.worker_nodes for e in disabled.environments
        ]

    def test_non_production_uses_production_worker_shape(self):
        """Dev: 3 non-prod control planes (2 vCPU) and 4 workers at 8 vCPU"""
        demand = workload(
            non_prod=AppCounts(medium=10),
            environments=(Environment.dev, Environment.prod),
        )
        result = calculate_cluster_sizing(demand, self_managed_topology())
        dev = result.environments[0]
        assert dev.environment == Environment.dev
        assert not dev.is_prod
        assert dev.worker_nodes == 4
        assert dev.total_cpu == dev.control_plane_nodes * 2 + dev.worker_nodes * 8
        assert dev.total_ram == dev.control_plane_nodes * 8 + dev.worker_nodes * 32
        assert dev.total_disk == dev.control_plane_nodes * 50 + dev.worker_nodes * 100


class TestDegenerateInput:
    def test_zero_capacity_worker(self):
        topology = managed_topology(worker=NodeSpec(cpu=0, ram=32))
        with pytest.raises(ArithmeticDegeneracy):
            calculate_cluster_sizing(workload(prod=AppCounts(small=1)), topology)

    def test_zero_capacity_worker_without_demand(self):
        topology = managed_topology(worker=NodeSpec(cpu=0, ram=32))
        result = calculate_cluster_sizing(workload(), topology, no_headroom())
        assert result.environments[0].worker_nodes == 3

    def test_missing_tier(self):
        partial = TechnologyProfile(
            name="Partial", tiers={AppTier.medium: TierFootprint(cpu=1, ram=1)}
        )
        with pytest.raises(UnknownCatalogKey, match="Partial tier=small"):
            app_resources(AppCounts(small=1), partial, 3)
        assert app_resources(AppCounts(medium=2), partial, 3) == (6.0, 6.0)

    def test_replicas_must_be_positive(self):
        with pytest.raises(InvalidInput):
            app_resources(AppCounts(medium=1), technology(), 0)

    def test_invalid_records_are_rejected(self):
        with pytest.raises(ValueError):
            Overcommit(cpu=0)
        with pytest.raises(ValueError):
            PolicySettings(system_reserve_percent=100)
        with pytest.raises(ValueError):
            PolicySettings(min_infra_nodes=5, max_infra_nodes=4)
        with pytest.raises(ValueError):
            AppCounts(small=-1)


def test_nodes_for():
    assert nodes_for(10, 3, "cpu") == 4
    assert nodes_for(9, 3, "cpu") == 3
    assert nodes_for(0, 0, "cpu") == 0
    with pytest.raises(InvalidInput):
        nodes_for(-1, 3, "cpu")
    with pytest.raises(ArithmeticDegeneracy):
        nodes_for(1, 0, "cpu")
    with pytest.raises(ArithmeticDegeneracy):
        nodes_for(1, float("nan"), "cpu")


def test_apply_headroom():
    assert apply_headroom(16, 37.5) == 22
    assert apply_headroom(3, 33) == 4
    assert apply_headroom(7, 0) == 7
