"""SQL schema for the local Pomoflow vault."""

CREATE_ACTIVE_SESSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS active_pomodoro_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    task_id TEXT,
    task_title TEXT,
    phase TEXT NOT NULL CHECK (phase IN ('work', 'short_break', 'long_break')),
    session_status TEXT NOT NULL
        CHECK (session_status IN ('ready', 'running', 'paused', 'stopped')),
    remaining_seconds INTEGER NOT NULL CHECK (remaining_seconds >= 0),
    completed_work_sessions INTEGER NOT NULL DEFAULT 0,
    completed_break_sessions INTEGER NOT NULL DEFAULT 0,
    work_duration INTEGER NOT NULL,
    short_break_duration INTEGER NOT NULL,
    long_break_duration INTEGER NOT NULL,
    sessions_until_long_break INTEGER NOT NULL,
    running_since TEXT,
    paused_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

CREATE_SESSION_HISTORY_TABLE = """
CREATE TABLE IF NOT EXISTS pomodoro_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    task_id TEXT,
    session_ref TEXT,
    session_type TEXT NOT NULL
        CHECK (session_type IN ('work', 'short_break', 'long_break')),
    duration_minutes INTEGER NOT NULL,
    interrupted INTEGER NOT NULL DEFAULT 0,
    pomodoro_number INTEGER NOT NULL DEFAULT 1,
    break_number INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT NOT NULL
)
"""

ALL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_active_sessions_user "
    "ON active_pomodoro_sessions(user_id, session_status)",
    "CREATE INDEX IF NOT EXISTS idx_active_sessions_updated "
    "ON active_pomodoro_sessions(updated_at)",
    "CREATE INDEX IF NOT EXISTS idx_history_task "
    "ON pomodoro_sessions(task_id, user_id)",
    "CREATE INDEX IF NOT EXISTS idx_history_completed "
    "ON pomodoro_sessions(user_id, completed_at)",
]
