import os
from pathlib import Path

from dotenv import load_dotenv

# Paths
BASE_DIR = Path(__file__).parent
load_dotenv(BASE_DIR / ".env")

# Site metadata
SITE_TITLE = os.getenv("SITE_TITLE", "Blog")

# Auth / session
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", "28800"))  # 8 hours

# Database
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017/blogi")

# Server
PORT = int(os.getenv("PORT", "3000"))
