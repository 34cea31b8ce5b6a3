import json
import os
from typing import Any

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/orbit")

JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

MIN_AGE = int(os.getenv("MIN_AGE", "13"))
MAX_AGE = int(os.getenv("MAX_AGE", "19"))
MAX_INTERESTS = int(os.getenv("MAX_INTERESTS", "5"))
QUIZ_LENGTH = int(os.getenv("QUIZ_LENGTH", "8"))
QUIZ_OPTION_COUNT = int(os.getenv("QUIZ_OPTION_COUNT", "4"))

INTEREST_CATALOG: list[str] = [
    "gaming",
    "coding",
    "music",
    "art",
    "reading",
    "cooking",
    "photography",
    "travel",
    "podcasts",
    "singing",
    "writing",
    "fitness",
]

SCORING_CONFIG: dict[str, Any] = {
    "PENALTY_FACTOR": float(os.getenv("SCORE_PENALTY_FACTOR", "2.5")),
    "FLOOR": int(os.getenv("SCORE_FLOOR", "10")),
    "CEILING": 100,
    "FALLBACK_MIN": int(os.getenv("SCORE_FALLBACK_MIN", "70")),
    "FALLBACK_MAX": int(os.getenv("SCORE_FALLBACK_MAX", "95")),
}

if os.getenv("SCORING_CONFIG_JSON"):
    try:
        SCORING_CONFIG.update(json.loads(os.getenv("SCORING_CONFIG_JSON", "{}")))
    except json.JSONDecodeError:
        pass

ROOM_CAPACITY = int(os.getenv("ROOM_CAPACITY", "12"))
ROOM_TAG_LIMIT = int(os.getenv("ROOM_TAG_LIMIT", "3"))
ROOM_VIBE_LABELS: list[str] = ["Chill", "Late Night", "Study", "Vibes"]
ROOM_DEFAULT_TOPIC = "General"

DISCOVERY_LIMIT = int(os.getenv("DISCOVERY_LIMIT", "20"))
MESSAGE_MAX_LENGTH = int(os.getenv("MESSAGE_MAX_LENGTH", "2000"))

RL_REQUEST_SEND_LIMIT = int(os.getenv("RL_REQUEST_SEND_LIMIT", "60"))
RL_REQUEST_RESOLVE_LIMIT = int(os.getenv("RL_REQUEST_RESOLVE_LIMIT", "100"))
RL_MESSAGE_SEND_LIMIT = int(os.getenv("RL_MESSAGE_SEND_LIMIT", "120"))
RL_WINDOW_SECONDS = int(os.getenv("RL_WINDOW_SECONDS", "60"))
