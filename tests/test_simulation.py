"""
Tests for random site simulations, history frames and figures.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import plotnine as gg
import polars as pl
import pytest
from loadshare.figures import allocation_history_plot, pool_utilization_figure
from loadshare.method import (
    AllocationEngine,
    SiteConfig,
    create_fixed_demand,
    create_round_robin_policy,
)
from loadshare.simulations import run_site_simulation


class TestRunSiteSimulation:
    """Test seeded random site activity."""

    def test_records_every_step(self):
        history = run_site_simulation(steps=25, seed=11)
        assert len(history) == 26
        assert history.steps[0].event == "init"
        assert [s.step for s in history.steps] == list(range(26))

    def test_no_invariant_violations(self):
        """Invariants hold across long random runs for both policies."""
        for policy in (None, create_round_robin_policy()):
            history = run_site_simulation(steps=300, seed=3, policy=policy)
            assert history.violations == []
            for snapshot in history.snapshots:
                assert snapshot.allocated_total <= snapshot.ceiling

    def test_seed_reproducible(self):
        a = run_site_simulation(steps=40, seed=99)
        b = run_site_simulation(steps=40, seed=99)
        assert [s.event for s in a.steps] == [s.event for s in b.steps]
        assert a.snapshots == b.snapshots

    def test_custom_event_weights(self):
        history = run_site_simulation(steps=10, seed=1, event_weights={"add": 1.0})
        events = [s.event for s in history.steps[1:]]
        assert events[:6] == [f"add({i})" for i in range(1, 7)]
        assert events[6:] == ["add(full)"] * 4

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="steps"):
            run_site_simulation(steps=-1)
        with pytest.raises(ValueError, match="event_weights"):
            run_site_simulation(steps=1, event_weights={"add": 0.0})
        with pytest.raises(ValueError, match="Unknown event"):
            run_site_simulation(steps=1, seed=0, event_weights={"explode": 1.0})


class TestHistoryFrame:
    """Test long-format history frames."""

    def test_history_to_polars(self):
        config = SiteConfig(consumer_count=4)
        history = run_site_simulation(steps=5, seed=5, config=config)
        df = history.to_polars()
        assert df.height == 6 * 4
        assert df["step"].unique().sort().to_list() == list(range(6))
        assert set(df["mode"].unique().to_list()) <= {"normal", "constrained"}
        per_step = df.group_by("step").agg(
            pl.col("allocated_capacity").sum().alias("allocated"),
            pl.col("ceiling").first(),
        )
        assert (per_step["allocated"] <= per_step["ceiling"]).all()


class TestFigures:
    """Test that figures build without rendering to screen."""

    def test_allocation_history_plot(self):
        df = run_site_simulation(steps=15, seed=8).to_polars()
        plot = allocation_history_plot(df)
        assert isinstance(plot, gg.ggplot)

    def test_pool_utilization_figure(self):
        engine = AllocationEngine(demand=create_fixed_demand([300, 150]))
        engine.add_consumer()
        engine.add_consumer()
        fig = pool_utilization_figure(engine.get_snapshot())
        ax = fig.axes[0]
        heights = [patch.get_height() for patch in ax.patches]
        assert heights == [5, 3, 0, 0, 0, 0, 0]
        assert "400 of 400 kW" in ax.get_title()
        plt.close(fig)
