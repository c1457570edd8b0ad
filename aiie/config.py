"""
AIIE — Configuration
====================
Centralised settings for session limits, scoring penalties and logging.
Values are read from the environment (optionally a project-level .env file).
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ── Paths ───────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ── Load .env ───────────────────────────────────────────────────────────
load_dotenv(PROJECT_ROOT / ".env")

# ── Session ─────────────────────────────────────────────────────────────
MAX_HINTS: int = int(os.getenv("AIIE_MAX_HINTS", "3"))
QUIZ_DURATION_SECONDS: int = int(os.getenv("AIIE_QUIZ_DURATION_SECONDS", "300"))
SESSION_IDLE_SECONDS: int = int(os.getenv("AIIE_SESSION_IDLE_SECONDS", "1800"))   # 0 disables eviction

# ── Scoring ─────────────────────────────────────────────────────────────
HINT_PENALTY: int = int(os.getenv("AIIE_HINT_PENALTY", "5"))             # score points per hint (learning mode)
SPEED_BONUS_SECONDS: int = int(os.getenv("AIIE_SPEED_BONUS_SECONDS", "120"))

# ── Logging ─────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("AIIE_LOG_LEVEL", "INFO")
LOG_FILE: str = os.getenv("AIIE_LOG_FILE", "")

# ── Service ─────────────────────────────────────────────────────────────
API_VERSION = "1.0.0"
