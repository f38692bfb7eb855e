"""Configuration for Interview Judge."""

import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("JUDGE_DATA_DIR", BASE_DIR / "data"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'judge.db'}")

# Evaluation time bounds
EVAL_TIME_LIMIT_MS = int(os.getenv("EVAL_TIME_LIMIT_MS", "1000"))
EVAL_MAX_TIME_LIMIT_MS = int(os.getenv("EVAL_MAX_TIME_LIMIT_MS", "10000"))

# Sandbox limits
SANDBOX_MEMORY_MB = int(os.getenv("SANDBOX_MEMORY_MB", "256"))
SANDBOX_MAX_OUTPUT_BYTES = int(os.getenv("SANDBOX_MAX_OUTPUT", str(1024 * 1024)))  # 1MB
SANDBOX_STARTUP_TIMEOUT_SECONDS = float(os.getenv("SANDBOX_STARTUP_TIMEOUT", "10"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# API
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
