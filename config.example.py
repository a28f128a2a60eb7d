# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKSYNC_APP_NAME": "App display name (default: tasksync).",
    "TASKSYNC_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Store
    "TASKSYNC_DEFAULT_USER_ID": "Owner assigned to tasks created without userId (default: user1).",
    # Durability mirror
    "TASKSYNC_SNAPSHOT_ENABLED": "Write the task set to a JSON snapshot after every change (true/false).",
    "TASKSYNC_SNAPSHOT_PATH": "Snapshot path (default: <data_dir>/tasks.json).",
    # Console
    "TASKSYNC_CONSOLE_ENABLED": "Run the admin console on start (true/false).",
    # Paths (gitignored)
    "TASKSYNC_DATA_DIR": "Local data directory for snapshot and logs (default: .local/tasksync).",
}
