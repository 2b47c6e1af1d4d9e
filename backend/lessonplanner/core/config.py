import os
from dotenv import load_dotenv

# Load .env from the backend directory
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "..", ".env"))

SECRET_KEY: str = os.getenv("SECRET_KEY", "lesson-planner-dev-secret-change-in-prod")
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 24h

# Seeded on first start of the data service
ADMIN_USERNAME: str = os.getenv("PLANNER_ADMIN_USERNAME", "admin")
ADMIN_PASSWORD: str = os.getenv("PLANNER_ADMIN_PASSWORD", "admin")

# Storage: both files live in backend/data/
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.abspath(os.path.join(BASE_DIR, "..", ".."))

DATABASE_PATH: str = os.getenv(
    "PLANNER_DATABASE_PATH",
    os.path.join(BACKEND_DIR, "data", "planner.db"),
)
LOCAL_CACHE_PATH: str = os.getenv(
    "PLANNER_CACHE_PATH",
    os.path.join(BACKEND_DIR, "data", "local_cache.db"),
)

# Remote data service used by the sync engine
API_BASE_URL: str = os.getenv("PLANNER_API_URL", "http://localhost:3001").rstrip("/")
API_TOKEN: str = os.getenv("PLANNER_API_TOKEN", "")
REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("PLANNER_REQUEST_TIMEOUT", "10"))

# Class partitions, in display order
CLASS_NAMES: tuple = tuple(
    name.strip() for name in os.getenv("PLANNER_CLASSES", "LKG,UKG,Reception").split(",") if name.strip()
)
DEFAULT_CLASS: str = CLASS_NAMES[0]

# Settled upload/refresh/migrate statuses fall back to idle after this long
STATUS_RESET_SECONDS: float = 3.0

UPLOAD_EXTENSIONS: tuple = (".xlsx", ".xls", ".csv")

# Where `python -m lessonplanner.main` serves the data service
SERVER_HOST: str = os.getenv("PLANNER_HOST", "127.0.0.1")
SERVER_PORT: int = int(os.getenv("PLANNER_PORT", "3001"))
