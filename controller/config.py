"""Configuration settings for the upload Controller server."""

import os
from common.constants import (
    COPY_BUFFER_BYTES,
    DEFAULT_FINAL_DIR,
    DEFAULT_MERGE_WORKERS,
    DEFAULT_TEMP_DIR,
)


FINAL_DIR = os.environ.get("UPLOADS_FINAL_DIR", DEFAULT_FINAL_DIR)

TEMP_DIR = os.environ.get("UPLOADS_TEMP_DIR", DEFAULT_TEMP_DIR)

MERGE_WORKERS = int(os.environ.get("UPLOADS_MERGE_WORKERS", str(DEFAULT_MERGE_WORKERS)))

COPY_BUFFER_SIZE = int(os.environ.get("UPLOADS_COPY_BUFFER", str(COPY_BUFFER_BYTES)))

CONTROLLER_HOST = os.environ.get("UPLOADS_HOST", "0.0.0.0")

CONTROLLER_PORT = int(os.environ.get("UPLOADS_PORT", "3000"))

# 3 requests per 10 seconds per client; 0 disables limiting
RATE_LIMIT_MAX = int(os.environ.get("UPLOADS_RATE_LIMIT_MAX", "3"))

RATE_LIMIT_WINDOW = float(os.environ.get("UPLOADS_RATE_LIMIT_WINDOW", "10"))
