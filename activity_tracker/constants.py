"""
Application constants.
Task catalogue, ledger sources, aggregation windows and environment defaults.
"""
import os

# Task categories (order defines the ordinal task list)
CATEGORY_CAREER = "career"
CATEGORY_PERSONAL = "personal"
CATEGORY_CUSTOM = "custom"
TASK_CATEGORIES = (CATEGORY_CAREER, CATEGORY_PERSONAL, CATEGORY_CUSTOM)

# Built-in task catalogue: id -> (display name, icon)
CAREER_TASK_OPTIONS = {
    "github": ("GitHub Commits", "💻"),
    "leetcode": ("LeetCode Problems", "🧩"),
    "gfg": ("GeeksforGeeks Practice", "📚"),
    "chess": ("Chess Games", "♟️"),
}

PERSONAL_TASK_OPTIONS = {
    "detox": ("Digital Detox", "🧘"),
    "screentime": ("Screen Time Limit", "📱"),
    "running": ("Running", "🏃"),
    "gym": ("Gym Workout", "💪"),
    "yoga": ("Yoga Practice", "🧘‍♀️"),
    "swimming": ("Swimming", "🏊"),
    "productivity": ("Daily Productivity Rating", "⭐"),
}

TASK_NAMES = {
    task_id: name
    for options in (CAREER_TASK_OPTIONS, PERSONAL_TASK_OPTIONS)
    for task_id, (name, _icon) in options.items()
}

# Ledger sources
SOURCE_INTERACTIVE = "interactive"
SOURCE_MESSAGING = "messaging"
ACTIVITY_SOURCES = (SOURCE_INTERACTIVE, SOURCE_MESSAGING)

# Aggregation windows (days, inclusive of today)
WEEK_WINDOW_DAYS = 7
MONTH_WINDOW_DAYS = 30
CHART_WINDOW_DAYS = 30

# Streak settings
DEFAULT_MIN_TASKS_REQUIRED = 3
MIN_TASKS_REQUIRED_FLOOR = 1

# Date format used on the wire (calendar-day strings)
DATE_FORMAT = "%Y-%m-%d"

# Command interpreter keywords (matched against lower-cased, trimmed text)
EMPTY_KEYWORDS = ("none", "no", "0")
ALL_KEYWORDS = ("all", "done all")
STATUS_KEYWORD = "status"

# Messaging
WHATSAPP_PREFIX = "whatsapp:"
DEFAULT_TWILIO_WHATSAPP_NUMBER = "whatsapp:+14155238886"
DEFAULT_REMINDER_HOURS = "9,12,15,18,21"

# Database
DEFAULT_DATABASE_URL = "sqlite:///./activity_tracker.db"

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/activity_tracker"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

# CORS
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
    ).split(",")
    if origin.strip()
]
