from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Channel(str, Enum):
    EMAIL = "EMAIL"
    WHATSAPP = "WHATSAPP"
    SMS = "SMS"
    APP = "APP"
    TELEGRAM = "TELEGRAM"


class Category(str, Enum):
    SPORTS = "SPORTS"
    NEWS = "NEWS"
    WEATHER = "WEATHER"
    SHOPPING = "SHOPPING"
    FINANCE = "FINANCE"
    ENTERTAINMENT = "ENTERTAINMENT"
    HEALTH = "HEALTH"
    TECHNOLOGY = "TECHNOLOGY"
    TRAVEL = "TRAVEL"
    SOCIAL = "SOCIAL"
    EDUCATION = "EDUCATION"
    PROMOTIONS = "PROMOTIONS"


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class UpstreamModel(BaseModel):
    """Base for payloads owned by the upstream services; unknown fields are kept."""

    model_config = ConfigDict(extra="allow")


class UserPreference(UpstreamModel):
    userId: str
    email: Optional[str] = None
    phoneNumber: Optional[str] = None
    preferences: List[Category] = Field(default_factory=list)
    enabledChannels: List[Channel] = Field(default_factory=list)
    telegramChatId: Optional[str] = None
    telegramUsername: Optional[str] = None
    notificationIntervalMinutes: Optional[int] = 60

    @field_validator("userId")
    @classmethod
    def user_id_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("User ID is required")
        return value


class NotificationRequest(BaseModel):
    userId: str
    subject: str = ""
    message: str = ""
    channels: List[Channel]

    @field_validator("userId")
    @classmethod
    def user_id_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("User ID is required")
        return value

    @field_validator("channels")
    @classmethod
    def at_least_one_channel(cls, value: List[Channel]) -> List[Channel]:
        if not value:
            raise ValueError("Please select at least one channel")
        return value


class Notification(UpstreamModel):
    id: Optional[str] = None
    userId: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    channels: List[str] = Field(default_factory=list)
    status: Optional[str] = None
    sentAt: Optional[str] = None
    createdAt: Optional[str] = None


class UserStats(UpstreamModel):
    totalUsers: int = 0
    telegramUsers: int = 0
    emailUsers: int = 0
    neverNotifiedUsers: int = 0
    categoryDistribution: Dict[str, int] = Field(default_factory=dict)
    frequencyDistribution: Dict[str, int] = Field(default_factory=dict)


class UserSummary(UpstreamModel):
    userId: str
    email: Optional[str] = None
    hasTelegram: bool = False
    telegramUsername: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    frequencyMinutes: Optional[int] = None
    frequencyLabel: Optional[str] = None
    lastNotificationSent: Optional[str] = None


class Reactions(UpstreamModel):
    likes: int = 0
    dislikes: int = 0


class NotificationStats(UpstreamModel):
    totalNotifications: int = 0
    sentLast24Hours: int = 0
    sentLast7Days: int = 0
    byStatus: Dict[str, int] = Field(default_factory=dict)
    byChannel: Dict[str, int] = Field(default_factory=dict)
    reactions: Reactions = Field(default_factory=Reactions)
    dailyBreakdown: Dict[str, int] = Field(default_factory=dict)


class RecentNotification(UpstreamModel):
    id: Optional[str] = None
    userId: Optional[str] = None
    subject: Optional[str] = None
    status: str = "UNKNOWN"
    sentAt: Optional[str] = None
    channels: List[str] = Field(default_factory=list)
    reaction: Optional[Any] = None


class ArticleCount(UpstreamModel):
    count: int = 0


class CategoryCount(BaseModel):
    category: str
    count: int = 0


class ScraperStats(BaseModel):
    categories: List[str] = Field(default_factory=list)
    counts: List[CategoryCount] = Field(default_factory=list)


class ChartData(BaseModel):
    labels: List[str] = Field(default_factory=list)
    values: List[int] = Field(default_factory=list)

    @classmethod
    def from_mapping(cls, mapping: Dict[str, int]) -> "ChartData":
        return cls(labels=list(mapping.keys()), values=[int(v) for v in mapping.values()])


class DashboardSnapshot(BaseModel):
    generatedAt: datetime
    systemOnline: bool = False
    userStats: Optional[UserStats] = None
    notificationStats: Optional[NotificationStats] = None
    scraper: ScraperStats = Field(default_factory=ScraperStats)
    recentActivity: List[RecentNotification] = Field(default_factory=list)
    users: List[UserSummary] = Field(default_factory=list)
    charts: Dict[str, ChartData] = Field(default_factory=dict)
