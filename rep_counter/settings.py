# rep_counter/settings.py

import os

import dotenv

dotenv.load_dotenv()

BACKEND_URL = os.getenv("REP_COUNTER_BACKEND_URL", "http://127.0.0.1:8000")
HTTP_TIMEOUT = float(os.getenv("REP_COUNTER_HTTP_TIMEOUT", "2.0"))
LOG_LEVEL = os.getenv("REP_COUNTER_LOG_LEVEL", "INFO").upper()
MAX_SESSIONS = int(os.getenv("REP_COUNTER_MAX_SESSIONS", "64"))
