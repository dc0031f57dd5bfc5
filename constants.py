import os

TOKEN = os.getenv("TOKEN", None)

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

COMMAND_PREFIX = os.getenv("COMMAND_PREFIX", "!")
VOICE_PREFIX = os.getenv("VOICE_PREFIX", "PV: ")

SWEEP_INTERVAL_SECONDS = float(os.getenv("SWEEP_INTERVAL_SECONDS", 10))
CHANNEL_TTL_SECONDS = float(os.getenv("CHANNEL_TTL_SECONDS", 30))

# Discord rejects channel names longer than this
CHANNEL_NAME_LIMIT = int(os.getenv("CHANNEL_NAME_LIMIT", 100))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

COMMANDS = ("meet",)
