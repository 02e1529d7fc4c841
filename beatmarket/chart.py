"""Chart sink: turns a finished ChartBundle into a line chart and exports it as PNG."""
from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Mapping, Protocol

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import matplotlib.ticker as mticker  # noqa: E402

from beatmarket.composer import ChartBundle  # noqa: E402
from beatmarket.config import ChartStyle  # noqa: E402
from beatmarket.errors import ChartError  # noqa: E402

logger = logging.getLogger(__name__)


class ChartSink(Protocol):
    def render(self, bundle: ChartBundle, colors: Mapping[str, str]) -> None:
        ...

    def export(self, path: str | Path) -> Path:
        ...


def assign_colors(bundle: ChartBundle, style: ChartStyle | None = None) -> dict[str, str]:
    """Portfolio gets its own colour; references cycle the palette in composition order."""
    style = style or ChartStyle()
    colors: dict[str, str] = {}
    for i, s in enumerate(bundle.series):
        if i == 0:
            colors[s.name] = style.portfolio_color
        else:
            colors[s.name] = style.palette[(i - 1) % len(style.palette)]
    return colors


def default_export_name(today: date | None = None) -> str:
    today = today or date.today()
    return f"beat-the-market-portfolio-{today.isoformat()}.png"


class MatplotlibChartSink:
    def __init__(self, style: ChartStyle | None = None):
        self.style = style or ChartStyle()
        self.figure = None

    def render(self, bundle: ChartBundle, colors: Mapping[str, str] | None = None) -> None:
        st = self.style
        colors = dict(colors or assign_colors(bundle, st))
        self.close()

        fig, ax = plt.subplots(figsize=st.figsize, facecolor=st.background)
        ax.set_facecolor(st.background)
        ax.tick_params(colors=st.text, labelsize=8)
        ax.grid(True, color=st.grid, linewidth=0.5)
        for spine in ax.spines.values():
            spine.set_color(st.grid)

        x = list(range(len(bundle.labels)))
        for i, s in enumerate(bundle.series):
            ax.plot(
                x,
                list(s.values),
                color=colors.get(s.name, st.text),
                linewidth=3 if i == 0 else 2,
                label=s.name,
                marker="o" if len(x) == 1 else None,
            )
        if len(x) > 1:
            ax.fill_between(x, list(bundle.series[0].values), 0, color=st.portfolio_color, alpha=0.1)

        ax.set_xticks(x)
        ax.set_xticklabels(list(bundle.labels), rotation=45 if len(x) > 6 else 0, ha="right" if len(x) > 6 else "center")
        ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda v, _: f"{v:.1f}%"))
        ax.set_title(st.title, color=st.portfolio_color, fontsize=16, fontfamily=st.font_family)
        ax.legend(facecolor=st.background, edgecolor=st.grid, labelcolor="#ffffff", prop={"family": st.font_family})
        fig.tight_layout()

        self.figure = fig
        logger.debug("rendered %d series over %d labels", len(bundle.series), len(x))

    def export(self, path: str | Path) -> Path:
        if self.figure is None:
            raise ChartError("No chart to export")
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        self.figure.savefig(out, dpi=self.style.dpi, facecolor=self.style.background, bbox_inches="tight")
        logger.info("chart exported to %s", out)
        return out

    def close(self) -> None:
        if self.figure is not None:
            plt.close(self.figure)
            self.figure = None
