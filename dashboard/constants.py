from backend.date_utils import DAY_RANGE_OPTIONS, DEFAULT_DAYS_TO_SHOW

APP_TITLE = "Daily Habits"

TAB_HABITS = "Habit Tracker"
TAB_TODOS = "Daily To-dos"
TAB_NOTES = "Notes"
TAB_OPTIONS = [TAB_HABITS, TAB_TODOS, TAB_NOTES]

PRESET_COLORS = [
    "#0ea5e9",
    "#22c55e",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#ec4899",
    "#06b6d4",
    "#f97316",
]
DEFAULT_TASK_COLOR = PRESET_COLORS[0]

RANGE_LABELS = {days: f"{days} days" for days in DAY_RANGE_OPTIONS}
WEEK_STEP_DAYS = 7

SESSION_TOKEN_KEY = "auth.token"
SESSION_USER_KEY = "auth.user"
