import os

# ==================== DATABASE ====================
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "codearena")

# ==================== AUTH ====================
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "codearena-dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
TOKEN_EXPIRE_DAYS = int(os.getenv("TOKEN_EXPIRE_DAYS", "7"))
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"
MIN_PASSWORD_LENGTH = 6

# Google OAuth
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
GOOGLE_REDIRECT_URI = os.getenv(
    "GOOGLE_REDIRECT_URI", "http://localhost:8000/api/auth/google/callback"
)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# ==================== HTTP ====================
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# ==================== JUDGE ====================
MOCK_PASS_PROBABILITY = float(os.getenv("MOCK_PASS_PROBABILITY", "0.7"))
SUPPORTED_LANGUAGES = ["python", "javascript", "java", "cpp"]

# Points awarded on the first accepted submission of a problem
DIFFICULTY_POINTS = {
    "easy": 10,
    "medium": 20,
    "hard": 30,
}

# ==================== MISC ====================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
VERSION = os.getenv("VERSION", "1.0.0")
