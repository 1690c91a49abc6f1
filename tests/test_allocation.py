"""
Tests for the allocation recompute and its policies.

Covers the reference scenarios, determinism, priority ordering, fairness
within a priority tier and the edge cases of an empty or zero-capacity site.
"""

import pytest
from loadshare.method import (
    CapacityMode,
    CapacityPool,
    ConsumerRegistry,
    SiteConfig,
    check_invariants,
    compute_desired_blocks,
    create_round_robin_policy,
    create_tiered_policy,
    recompute,
    sort_candidates,
)


def make_site(config=None, mode=CapacityMode.NORMAL):
    config = config if config is not None else SiteConfig()
    return CapacityPool(config, mode), ConsumerRegistry(config)


class TestReferenceScenarios:
    """Test the documented allocation scenarios."""

    def test_higher_priority_served_first(self):
        """8 blocks, priority 5 and priority 3 both asking for 300 kW -> 300 / 100."""
        pool, registry = make_site()
        registry.connect(1, 300)
        registry.set_priority(1, 5)
        registry.connect(2, 300)
        registry.set_priority(2, 3)

        snapshot = recompute(pool, registry)

        assert snapshot.allocated(1) == 300
        assert snapshot.allocated(2) == 100
        assert snapshot.allocated_total == 400
        assert snapshot.free_blocks == 0

    def test_equal_priority_split(self):
        """6 blocks, three equal-priority consumers asking 3 blocks each -> 2 blocks each."""
        config = SiteConfig(normal_capacity=300)
        pool, registry = make_site(config)
        for consumer_id in (1, 2, 3):
            registry.connect(consumer_id, 150)

        snapshot = recompute(pool, registry)

        assert [snapshot.allocated(i) for i in (1, 2, 3)] == [100, 100, 100]
        assert snapshot.free_blocks == 0

    def test_mode_switch_caps_single_consumer(self):
        """A lone consumer holding 400 kW is capped at 300 kW after peak shaving."""
        config = SiteConfig(max_per_consumer=400)
        pool, registry = make_site(config)
        registry.connect(1, 400)
        assert recompute(pool, registry).allocated(1) == 400

        pool.set_mode(CapacityMode.CONSTRAINED)
        snapshot = recompute(pool, registry)

        assert snapshot.allocated(1) == 300
        assert snapshot.total_blocks == 6
        assert snapshot.free_blocks == 0
        assert snapshot.mode is CapacityMode.CONSTRAINED


class TestAllocationProperties:
    """Test invariants that hold for every recompute."""

    @pytest.fixture
    def busy_site(self):
        pool, registry = make_site()
        requests = {1: 300, 2: 250, 3: 100, 4: 300, 5: 50, 6: 200}
        priorities = {1: 2, 2: 5, 3: 3, 4: 3, 5: 1, 6: 5}
        for consumer_id, request in requests.items():
            registry.connect(consumer_id, request)
            registry.set_priority(consumer_id, priorities[consumer_id])
        return pool, registry

    @pytest.mark.parametrize("policy_factory", [create_tiered_policy, create_round_robin_policy])
    def test_invariants_hold(self, busy_site, policy_factory):
        pool, registry = busy_site
        for mode in (CapacityMode.NORMAL, CapacityMode.CONSTRAINED):
            pool.set_mode(mode)
            snapshot = recompute(pool, registry, policy_factory())
            assert check_invariants(snapshot, registry) == []
            assert snapshot.allocated_total <= pool.total_blocks() * pool.block_size
            for consumer in registry:
                assert snapshot.allocated(consumer.id) % 50 == 0
                assert snapshot.allocated(consumer.id) <= consumer.requested_capacity
                assert consumer.allocated_capacity == snapshot.allocated(consumer.id)

    def test_deterministic(self, busy_site):
        """Test that repeated recomputes without changes give identical snapshots."""
        pool, registry = busy_site
        first = recompute(pool, registry)
        second = recompute(pool, registry)
        assert first == second
        assert first is not second
        assert hash(first) == hash(second)

    def test_tiered_serves_tiers_in_order(self, busy_site):
        """Priority-5 consumers 2 and 6 share the pool before anyone else."""
        pool, registry = busy_site
        snapshot = recompute(pool, registry, create_tiered_policy())
        # Tier 5 wants 5 + 4 = 9 blocks > 8 available: round robin in id order
        assert snapshot.allocated(2) == 200
        assert snapshot.allocated(6) == 200
        assert all(snapshot.allocated(i) == 0 for i in (1, 3, 4, 5))

    def test_round_robin_spreads_across_tiers(self, busy_site):
        """The flat policy gives every connected consumer one block per pass."""
        pool, registry = busy_site
        snapshot = recompute(pool, registry, create_round_robin_policy())
        # Pass 1 grants 6 blocks (one each), pass 2 reaches the top tier first
        assert snapshot.allocated(2) == 100
        assert snapshot.allocated(6) == 100
        assert snapshot.allocated(5) == 50
        assert snapshot.allocated(1) == 50
        assert snapshot.allocated_total == 400

    @pytest.mark.parametrize("policy_factory", [create_tiered_policy, create_round_robin_policy])
    def test_priority_ordering(self, policy_factory):
        """Equal demand, different priority: the higher priority never receives less."""
        pool, registry = make_site(SiteConfig(normal_capacity=250, constrained_capacity=250))
        registry.connect(1, 300)
        registry.set_priority(1, 2)
        registry.connect(2, 300)
        registry.set_priority(2, 4)
        snapshot = recompute(pool, registry, policy_factory())
        assert snapshot.allocated(2) >= snapshot.allocated(1)
        assert snapshot.allocated_total == 250

    @pytest.mark.parametrize("policy_factory", [create_tiered_policy, create_round_robin_policy])
    def test_same_priority_fairness(self, policy_factory):
        """Same-priority consumers competing for scarce blocks differ by at most one block."""
        pool, registry = make_site(SiteConfig(normal_capacity=350))
        for consumer_id in (1, 2, 3):
            registry.connect(consumer_id, 300)
        snapshot = recompute(pool, registry, policy_factory())
        blocks = [snapshot.allocated_blocks(i) for i in (1, 2, 3)]
        assert blocks == [3, 2, 2]
        assert max(blocks) - min(blocks) <= 1

    def test_satisfied_demand_leaves_free_blocks(self):
        pool, registry = make_site()
        registry.connect(1, 100)
        registry.connect(2, 50)
        snapshot = recompute(pool, registry)
        assert snapshot.allocated_total == 150
        assert snapshot.free_blocks == 5

    def test_disconnect_releases_blocks(self):
        """Blocks released by a disconnect go to the remaining consumers."""
        pool, registry = make_site()
        registry.connect(1, 300)
        registry.connect(2, 300)
        before = recompute(pool, registry)
        assert before.allocated(1) == 200 and before.allocated(2) == 200

        registry.disconnect(1)
        after = recompute(pool, registry)
        assert after.allocated(1) == 0
        assert after.allocated(2) == 300
        assert registry.get(1).allocated_capacity == 0


class TestEdgeCases:
    """Test empty and zero-capacity sites."""

    def test_no_connected_consumers(self):
        pool, registry = make_site()
        snapshot = recompute(pool, registry)
        assert dict(snapshot.allocations) == {i: 0 for i in range(1, 7)}
        assert snapshot.free_blocks == snapshot.total_blocks == 8

    def test_zero_capacity(self):
        config = SiteConfig(normal_capacity=0, constrained_capacity=0)
        pool, registry = make_site(config)
        registry.connect(1, 300)
        snapshot = recompute(pool, registry)
        assert snapshot.total_blocks == 0
        assert snapshot.free_blocks == 0
        assert snapshot.allocated(1) == 0

    def test_request_above_ceiling_clipped(self):
        """A request above the ceiling is clipped, not rejected."""
        config = SiteConfig(normal_capacity=200, constrained_capacity=100)
        pool, registry = make_site(config)
        registry.connect(1, 300)
        desired = compute_desired_blocks(registry.connected(), 50, pool.total_blocks())
        assert desired == {1: 4}
        assert recompute(pool, registry).allocated(1) == 200

    def test_stale_allocation_cleared_for_disconnected(self):
        pool, registry = make_site()
        registry.get(4).allocated_capacity = 150
        snapshot = recompute(pool, registry)
        assert snapshot.allocated(4) == 0
        assert registry.get(4).allocated_capacity == 0


class TestSortCandidates:
    def test_priority_desc_then_id(self):
        _, registry = make_site()
        for consumer_id, priority in [(1, 3), (2, 5), (3, 3), (4, 1), (5, 5)]:
            registry.connect(consumer_id, 100)
            registry.set_priority(consumer_id, priority)
        order = [c.id for c in sort_candidates(registry.connected())]
        assert order == [2, 5, 1, 3, 4]
