import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from admin_dashboard.dashboard.models import ChartData

logger = logging.getLogger("uvicorn.error")


class ChartKind(str, Enum):
    DAILY = "daily"
    CATEGORY = "category"
    FREQUENCY = "frequency"
    CHANNEL = "channel"
    STATUS = "status"


@dataclass
class Chart:
    kind: ChartKind
    data: ChartData
    disposed: bool = False

    def dispose(self) -> None:
        self.disposed = True


class ChartRegistry:
    """
    Owns at most one live chart per kind.

    Replacing a chart disposes the previous one before the new one becomes
    visible, so a refresh never leaves two charts of the same kind alive.
    """

    def __init__(self):
        self._charts: Dict[ChartKind, Chart] = {}

    def get(self, kind: ChartKind) -> Optional[Chart]:
        return self._charts.get(kind)

    def replace(self, kind: ChartKind, data: ChartData) -> Chart:
        previous = self._charts.pop(kind, None)
        if previous is not None:
            previous.dispose()
            logger.debug(f"[Dashboard] Disposed previous {kind.value} chart")
        chart = Chart(kind=kind, data=data)
        self._charts[kind] = chart
        return chart

    def dispose_all(self) -> None:
        for chart in self._charts.values():
            chart.dispose()
        self._charts.clear()

    def snapshot(self) -> Dict[str, ChartData]:
        return {kind.value: chart.data for kind, chart in self._charts.items()}

    def __len__(self) -> int:
        return len(self._charts)
