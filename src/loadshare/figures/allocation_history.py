import polars as pl
import plotnine as gg

from loadshare.simulations import run_site_simulation
from loadshare.utils import get_figures_path


def allocation_history_plot(df: pl.DataFrame) -> gg.ggplot:
    """Stacked allocated kW per consumer over a simulation history frame, with the site ceiling."""
    df = df.with_columns(
        pl.concat_str([pl.lit("Stall "), pl.col("consumer_id").cast(pl.Utf8)]).alias("stall")
    )
    ceiling = df.group_by("step").agg(pl.col("ceiling").first()).sort("step")
    return (
        gg.ggplot(df, gg.aes(x="step", y="allocated_capacity"))
        + gg.geom_area(gg.aes(fill="stall"), position="stack", alpha=0.85)
        + gg.geom_step(gg.aes(x="step", y="ceiling"), data=ceiling, linetype="dashed")
        + gg.labs(
            x="Step",
            y="Allocated (kW)",
            fill="",
            title="Allocated capacity per stall",
            subtitle="Dashed line: active site ceiling",
        )
        + gg.theme_minimal()
        + gg.theme(legend_position="bottom")
    )


def main(steps: int = 60, seed: int = 20251017):
    history = run_site_simulation(steps=steps, seed=seed)
    allocation_history_plot(history.to_polars()).save(
        width=7.5,
        height=4,
        filename=get_figures_path("allocation_history.png"),
    )


if __name__ == "__main__":
    main()
