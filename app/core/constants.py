import os

from app.core.config import settings

# 📁 Local upload paths (used when Spaces is not configured)
BASE_STATIC_PATH = os.path.join("app", "static")

UPLOAD_PATHS = {
    "products": settings.upload_dir,
}

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp"]
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_IMAGES_PER_UPLOAD = 10

ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# Ensure all folders exist
os.makedirs(BASE_STATIC_PATH, exist_ok=True)
for path in UPLOAD_PATHS.values():
    os.makedirs(path, exist_ok=True)
