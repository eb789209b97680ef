import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
RELOAD = os.getenv("RELOAD", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Sliding window: RATE_LIMIT messages per RATE_LIMIT_WINDOW_MS
RATE_LIMIT = int(os.getenv("RATE_LIMIT", 10))
RATE_LIMIT_WINDOW_MS = int(os.getenv("RATE_LIMIT_WINDOW_MS", 60000))

BANNED_WORDS = [w.strip().lower() for w in os.getenv("BANNED_WORDS", "spam,abuse,hate").split(",") if w.strip()]

ALIAS_ADJECTIVES = ["Happy", "Clever", "Swift", "Brave", "Quiet", "Bold", "Kind", "Wise"]
ALIAS_NOUNS = ["Fox", "Eagle", "Wolf", "Bear", "Lion", "Tiger", "Owl", "Hawk"]
ALIAS_MAX_NUMBER = 999

# Fixed roster of named rooms, created at process start
NAMED_ROOMS = [
    {"id": "general", "name": "General Chat", "description": "Talk about anything with anyone", "capacity": 50},
    {"id": "tech", "name": "Tech Talk", "description": "Programming, gadgets and everything tech", "capacity": 30},
    {"id": "gaming", "name": "Gaming Lounge", "description": "Games, streams and setups", "capacity": 30},
    {"id": "music", "name": "Music Corner", "description": "Share what you are listening to", "capacity": 25},
    {"id": "random", "name": "Random", "description": "Off-topic and spontaneous conversations", "capacity": 40},
]

WAITING_MESSAGE = "Looking for someone to chat with..."
PARTNER_LEFT_MESSAGE = "Your chat partner has left the conversation."
