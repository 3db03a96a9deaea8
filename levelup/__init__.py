"""LevelUp core library: XP engine, weekly commitments, and record stores.

Public API re-exports for convenient imports:
    from levelup import build_services, XPEngine, level_for_xp, ...
"""

# Errors
from levelup.errors import (
    LevelUpError,
    StorageError,
    MalformedStateError,
    InvalidInputError,
    RecordNotFoundError,
)

# Storage
from levelup.storage import (
    KeyValueStore,
    MemoryStore,
    FileStore,
    load_json,
    save_json,
)

# Level math
from levelup.leveling import (
    HABIT_XP,
    TASK_XP,
    WEEKLY_GOAL_BONUS,
    STREAK_BONUS,
    level_for_xp,
    level_floor_xp,
    level_ceiling_xp,
    week_start,
    weekly_target_xp,
)

# Workspace & clock
from levelup.workspace import (
    workspace_root,
    store_dir,
    profile_path,
    hooks_config_path,
    load_profile,
    save_profile,
    get_user_timezone,
    today_str,
    SystemClock,
)

# Engines
from levelup.progress import ProgressStore
from levelup.xp import XPEngine
from levelup.weekly import WeeklyCommitmentTracker, to_item_ref
from levelup.notifications import Notifier, parse_reminder_time
from levelup.services import Services, build_services

# Records
from levelup.habits import (
    validate_habit,
    load_habits,
    save_habits,
    find_habit,
    create_habit,
    update_habit,
    delete_habit,
    is_completed_today,
    set_habit_completion,
    toggle_habit,
)
from levelup.tasks import (
    validate_task,
    load_tasks,
    save_tasks,
    find_task,
    create_task,
    update_task,
    delete_task,
    set_task_completion,
    toggle_task,
    get_tasks_with_computed_fields,
)
from levelup.goals import (
    validate_goal,
    load_goals,
    save_goals,
    find_goal,
    create_goal,
    update_goal_progress,
    set_goal_completion,
    delete_goal,
)
from levelup.penalties import (
    validate_penalty,
    load_penalties,
    save_penalties,
    create_penalty,
    delete_penalty,
    total_penalty_points,
    penalties_between,
    load_user,
    add_user_penalty_points,
)
from levelup.stats import compute_overview

# Models
from levelup.models import (
    ProgressState,
    AwardResult,
    LevelProgress,
    ItemRef,
    WeeklyCommitment,
    Habit,
    Task,
    Goal,
    Penalty,
    User,
    Reminder,
    Profile,
    CompletionResult,
)
