import os


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _extensions(name: str, default: str) -> frozenset:
    raw = os.environ.get(name, default)
    return frozenset(ext.strip().lower().lstrip(".") for ext in raw.split(",") if ext.strip())


SECRET_KEY = os.environ.get("SECRET_KEY", "TU_SECRET_KEY_TEMPORAL")
ALGORITHM = os.environ.get("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = float(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# Default to local SQLite for dev/tests; override via env in Docker/Prod
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./taskdesk.db")

# Uploaded attachments live under STORAGE_ROOT/<namespace>/
STORAGE_ROOT = os.environ.get("STORAGE_ROOT", "./storage")
ATTACHMENT_NAMESPACE = os.environ.get("ATTACHMENT_NAMESPACE", "attachments")

# Create and update deliberately carry separate rules; see DESIGN.md
TASK_CREATE_ATTACHMENT_TYPES = _extensions("TASK_CREATE_ATTACHMENT_TYPES", "jpg,jpeg,png")
TASK_CREATE_ATTACHMENT_REQUIRED = _flag("TASK_CREATE_ATTACHMENT_REQUIRED", "true")
TASK_UPDATE_ATTACHMENT_TYPES = _extensions("TASK_UPDATE_ATTACHMENT_TYPES", "jpg,jpeg,png,pdf,docx")
TASK_UPDATE_ATTACHMENT_REQUIRED = _flag("TASK_UPDATE_ATTACHMENT_REQUIRED", "true")

# When false any authenticated user may read the cross-user completion report
REPORTS_REQUIRE_ADMIN = _flag("REPORTS_REQUIRE_ADMIN", "false")

API_PREFIX = os.environ.get("API_PREFIX", "/api")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
