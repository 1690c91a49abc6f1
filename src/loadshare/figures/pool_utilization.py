import matplotlib.pyplot as plt

from loadshare.method import AllocationEngine, AllocationSnapshot, create_fixed_demand
from loadshare.utils import get_figures_path


def pool_utilization_figure(snapshot: AllocationSnapshot):
    """Bar chart of allocated blocks per consumer next to the free pool."""
    labels = [f"Stall {i}" for i in snapshot.allocations] + ["Free"]
    blocks = [snapshot.allocated_blocks(i) for i in snapshot.allocations] + [snapshot.free_blocks]
    colors = ["tab:blue"] * len(snapshot.allocations) + ["lightgrey"]

    fig, ax = plt.subplots(figsize=(7.5, 4))
    ax.bar(labels, blocks, color=colors)
    ax.set_ylabel(f"Blocks ({snapshot.block_size} kW each)")
    ax.set_title(
        f"Pool utilization: {snapshot.allocated_total} of {snapshot.ceiling} kW "
        f"({snapshot.mode.value})"
    )
    ax.set_ylim(0, max(snapshot.total_blocks, 1))
    fig.tight_layout()
    return fig


def main():
    engine = AllocationEngine(demand=create_fixed_demand([300, 150, 100, 250]))
    for _ in range(4):
        engine.add_consumer()
    engine.set_priority(1, 5)
    fig = pool_utilization_figure(engine.get_snapshot())
    fig.savefig(get_figures_path("pool_utilization.png"), dpi=150)
    plt.close(fig)


if __name__ == "__main__":
    main()
