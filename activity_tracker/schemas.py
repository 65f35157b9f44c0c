from pydantic import BaseModel, Field
from datetime import date
from typing import Any, Dict, List, Optional

from activity_tracker.constants import DEFAULT_MIN_TASKS_REQUIRED


# Streak state
class StreakContext(BaseModel):
    """Global streak fields embedded in the user profile, plus the gating setting"""
    current_streak: int = Field(default=0, ge=0)
    best_streak: int = Field(default=0, ge=0)
    last_completed_date: Optional[date] = None
    min_tasks_required: int = Field(default=DEFAULT_MIN_TASKS_REQUIRED, ge=1)


class TaskStreakResponse(BaseModel):
    task_id: str
    current_streak: int = 0
    best_streak: int = 0
    total_days: int = 0
    last_completed_date: Optional[date] = None

    class Config:
        from_attributes = True


class GlobalStreakResponse(BaseModel):
    current_streak: int = 0
    best_streak: int = 0
    last_completed_date: Optional[date] = None


# Completion
class CompletionRequest(BaseModel):
    completed: bool = True
    value: Optional[Any] = None  # Free-form payload, stored verbatim


class CompletionResult(BaseModel):
    completed_count: int
    min_required: int
    streak_updated: bool
    task_streak: Optional[TaskStreakResponse] = None
    global_streak: GlobalStreakResponse


# Settings / selection
class StreakSettingsUpdate(BaseModel):
    min_tasks_required: int


class TaskSelectionUpdate(BaseModel):
    career: List[str] = Field(default_factory=list)
    personal: List[str] = Field(default_factory=list)
    custom: List[str] = Field(default_factory=list)


class UserProfileResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: str = ""
    is_admin: bool = False
    selected_tasks: Dict[str, List[str]]
    streak_settings: Dict[str, int]
    global_streak: GlobalStreakResponse


# Dashboard
class DashboardTask(BaseModel):
    id: str
    type: str  # career, personal, custom
    name: str
    completed: bool
    week_completed: int
    month_completed: int
    current_streak: int = 0
    best_streak: int = 0


class DashboardStats(BaseModel):
    total_tasks: int
    completed_today: int
    completion_rate: int
    streak_earned: bool
    progress_to_streak: str  # "completed/required"


class ChartPoint(BaseModel):
    date: date
    completed: int
    total: int
    percentage: int
    threshold_met: bool


class DashboardResponse(BaseModel):
    user: Dict[str, Any]
    tasks: List[DashboardTask]
    global_streak: GlobalStreakResponse
    streak_settings: Dict[str, int]
    stats: DashboardStats
    chart_data: List[ChartPoint]


# Admin
class AdminUserStats(BaseModel):
    completed_today: int
    total_streak: int  # Sum of per-task current streaks
    best_streak: int


class AdminUserEntry(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: str = ""
    is_admin: bool = False
    selected_tasks: Dict[str, List[str]]
    global_streak: GlobalStreakResponse
    stats: AdminUserStats


class LeaderboardEntry(BaseModel):
    user_id: int
    name: str
    total_streak: int
    best_streak: int
    total_days: int


# Messaging
class DeliveryResult(BaseModel):
    success: bool
    mock: bool = False
    sid: Optional[str] = None
    error: Optional[str] = None


class InterpretResult(BaseModel):
    type: str  # status, completion, empty
    details: Dict[str, Any] = Field(default_factory=dict)
