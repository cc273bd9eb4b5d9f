"""Project-wide constants (naming contract, default directories, buffer sizes)."""

DEFAULT_FINAL_DIR: str = "./uploads"
DEFAULT_TEMP_DIR: str = "./temp"

COPY_BUFFER_BYTES: int = 1 * 1024 * 1024  # 1 MiB stream copy buffer

CHUNK_SUFFIX: str = ".part"
SWEEP_GLOB: str = f"*{CHUNK_SUFFIX}*"

DEFAULT_MERGE_WORKERS: int = 4
DEFAULT_UPLOAD_CHUNK_SIZE: int = 5 * 1024 * 1024  # 5 MiB per chunk for the CLI uploader
