import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, List, Optional, TypeVar

from admin_dashboard.dashboard.charts import ChartKind, ChartRegistry
from admin_dashboard.dashboard.gateway_client import GatewayClient, GatewayError
from admin_dashboard.dashboard.models import (
    CategoryCount,
    ChartData,
    DashboardSnapshot,
    NotificationStats,
    ScraperStats,
    UserStats,
    UserSummary,
)
from admin_dashboard.vars import RECENT_ACTIVITY_LIMIT

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")


class DashboardService:
    """
    Builds the admin overview in one pass over the gateway.

    Every section is loaded independently; a failing section is logged and
    left empty so the rest of the dashboard still renders.
    """

    def __init__(
        self,
        client: GatewayClient,
        charts: Optional[ChartRegistry] = None,
        recent_limit: int = RECENT_ACTIVITY_LIMIT,
    ):
        self.client = client
        self.charts = charts if charts is not None else ChartRegistry()
        self.recent_limit = recent_limit

    async def _section(self, name: str, loader: Awaitable[T], default: T) -> T:
        try:
            return await loader
        except GatewayError as e:
            logger.warning(
                f"[Dashboard] Failed to load {name}: {e.message} (status={e.status_code})"
            )
            return default
        except ValueError as e:
            # pydantic validation errors for unexpected upstream payloads
            logger.warning(f"[Dashboard] Unexpected payload for {name}: {e}")
            return default

    async def load_scraper_stats(self) -> ScraperStats:
        categories = await self.client.scraper_categories()

        async def count(category: str) -> Optional[CategoryCount]:
            try:
                return CategoryCount(
                    category=category, count=await self.client.article_count(category)
                )
            except GatewayError as e:
                logger.warning(f"[Dashboard] Failed to get count for {category}: {e.message}")
                return None
            except ValueError as e:
                logger.warning(f"[Dashboard] Unexpected count payload for {category}: {e}")
                return None

        counts = await asyncio.gather(*(count(c) for c in categories))
        return ScraperStats(
            categories=categories, counts=[c for c in counts if c is not None]
        )

    async def refresh(self) -> DashboardSnapshot:
        user_stats, notification_stats, scraper, recent, users = await asyncio.gather(
            self._section("user stats", self.client.user_stats(), None),
            self._section("notification stats", self.client.notification_stats(), None),
            self._section("scraper stats", self.load_scraper_stats(), ScraperStats()),
            self._section(
                "recent activity",
                self.client.recent_notifications(self.recent_limit),
                [],
            ),
            self._section("users list", self.client.users_list(), []),
        )
        system_online = await self.client.scraper_health()

        self._update_charts(user_stats, notification_stats)

        return DashboardSnapshot(
            generatedAt=datetime.now(timezone.utc),
            systemOnline=system_online,
            userStats=user_stats,
            notificationStats=notification_stats,
            scraper=scraper,
            recentActivity=recent,
            users=users,
            charts=self.charts.snapshot(),
        )

    def _update_charts(
        self,
        user_stats: Optional[UserStats],
        notification_stats: Optional[NotificationStats],
    ) -> None:
        if user_stats is not None:
            if user_stats.categoryDistribution:
                self.charts.replace(
                    ChartKind.CATEGORY,
                    ChartData.from_mapping(user_stats.categoryDistribution),
                )
            if user_stats.frequencyDistribution:
                self.charts.replace(
                    ChartKind.FREQUENCY,
                    ChartData.from_mapping(user_stats.frequencyDistribution),
                )
        if notification_stats is not None:
            if notification_stats.dailyBreakdown:
                self.charts.replace(
                    ChartKind.DAILY,
                    ChartData.from_mapping(notification_stats.dailyBreakdown),
                )
            if notification_stats.byChannel:
                self.charts.replace(
                    ChartKind.CHANNEL,
                    ChartData.from_mapping(notification_stats.byChannel),
                )
            if notification_stats.byStatus:
                self.charts.replace(
                    ChartKind.STATUS,
                    ChartData.from_mapping(notification_stats.byStatus),
                )


def filter_users(users: List[UserSummary], query: str) -> List[UserSummary]:
    """Case-insensitive match on user id, email or telegram username."""
    query = (query or "").strip().lower()
    if not query:
        return list(users)
    return [
        u
        for u in users
        if query in u.userId.lower()
        or query in (u.email or "").lower()
        or query in (u.telegramUsername or "").lower()
    ]

