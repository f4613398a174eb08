"""
Temporary upload storage.

Files are written as `<content_hash>_<epoch_ms>.<ext>` under the upload
directory. Deleting them is the caller's responsibility; `cleanup_old_files`
is the safety net run periodically from the app lifespan.
"""

import logging
import os
import time

import psutil

from app.config import settings
from app.core.file_validator import sanitize_log_message

logger = logging.getLogger(__name__)


class TempFileStore:
    def __init__(self, upload_dir: str = settings.upload_dir, max_age_sec: int = settings.temp_file_max_age_sec):
        self.upload_dir = upload_dir
        self.max_age_sec = max_age_sec

    def ensure_dir(self) -> None:
        if not os.path.isdir(self.upload_dir):
            os.makedirs(self.upload_dir, exist_ok=True)
            logger.info("[FILE] Created uploads directory")

    def save(self, data: bytes, content_hash: str, ext: str) -> str:
        self.ensure_dir()
        filename = f"{content_hash}_{int(time.time() * 1000)}.{ext}"
        path = os.path.join(self.upload_dir, filename)
        with open(path, "wb") as f:
            f.write(data)
        logger.info(f"[FILE] Saved temporary file: {filename}")
        return path

    def delete(self, path: str) -> None:
        try:
            os.remove(path)
            logger.info(f"[FILE] Deleted temporary file: {os.path.basename(path)}")
        except OSError as e:
            logger.warning(sanitize_log_message(f"[FILE] Could not delete file: {e}"))

    def cleanup_old_files(self) -> int:
        """Remove files older than max_age_sec. Returns how many were removed."""
        self.ensure_dir()
        now = time.time()
        cleaned = 0
        for name in os.listdir(self.upload_dir):
            path = os.path.join(self.upload_dir, name)
            try:
                if os.path.isfile(path) and now - os.path.getmtime(path) > self.max_age_sec:
                    os.remove(path)
                    cleaned += 1
            except OSError as e:
                logger.error(sanitize_log_message(f"[FILE] Cleanup error for {path}: {e}"))

        if cleaned:
            logger.info(f"[FILE] Cleaned up {cleaned} old file(s)")
        return cleaned


def log_memory(stage: str) -> None:
    """Log current process and system memory usage. Only runs when DEBUG logging is active."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    process = psutil.Process(os.getpid())
    mem_info = process.memory_info()
    sys_mem = psutil.virtual_memory()
    logger.debug(
        f"[MEMORY] {stage} | "
        f"PID: {os.getpid()} | "
        f"Process RSS: {mem_info.rss / 1024 / 1024:.2f} MB | "
        f"System Available: {sys_mem.available / 1024 / 1024:.2f} MB / {sys_mem.total / 1024 / 1024:.2f} MB"
    )
