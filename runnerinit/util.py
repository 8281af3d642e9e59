import base64
import gzip
import json
import logging
import logging.handlers
import re
import os
import secrets
import shutil
import string
import sys
import time
from pathlib import Path

from .errors import InvalidInputError, LogFolderError

LOG_MAX_BYTES = 500 * 1024 * 1024
LOG_BACKUP_COUNT = 3
LOG_MAX_AGE_DAYS = 28

ALPHANUMERIC = string.ascii_letters + string.digits
ID_LENGTH = 12

EMAIL_RE = re.compile(r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$")
ALPHANUMERIC_RE = re.compile(r"^[a-zA-Z0-9]+$")


class JSONFormatter(logging.Formatter):
    def format(self, record):
        entry = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def gzip_namer(name: str) -> str:
    return name + ".gz"


def prune_old_logs(log_file: Path, max_age_days: int = LOG_MAX_AGE_DAYS):
    cutoff = time.time() - max_age_days * 24 * 60 * 60
    prefix = log_file.name + "."
    for backup in log_file.parent.iterdir():
        if backup.name.startswith(prefix) and backup.name.endswith(".gz"):
            if backup.stat().st_mtime < cutoff:
                backup.unlink()


def gzip_rotator(source: str, dest: str):
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)
    prune_old_logs(Path(source))


def get_logging_handler(log_file: str) -> logging.Handler:
    """Return a stdout handler, or a size rotated file handler for *log_file*.

    Rotated files are gzipped and dropped after LOG_MAX_AGE_DAYS. The
    parent folder is created when missing; errors creating it are
    reported without the offending path.
    """
    if not log_file:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
    else:
        try:
            Path(log_file).parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError:
            raise LogFolderError("failed to create log folder") from None
        handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
        )
        handler.namer = gzip_namer
        handler.rotator = gzip_rotator
    handler.setFormatter(JSONFormatter())
    return handler


def sanitize_log_entry(entry: str) -> str:
    return entry.replace("\n", "").replace("\r", "")


def get_random_string(length: int) -> str:
    return "".join(secrets.choice(ALPHANUMERIC) for _ in range(length))


def new_id() -> str:
    return get_random_string(ID_LENGTH)


def is_valid_email(email: str) -> bool:
    return EMAIL_RE.match(email) is not None


def is_alphanumeric(value: str) -> bool:
    return ALPHANUMERIC_RE.match(value) is not None


def convert_file_to_base64(path: str) -> str:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise InvalidInputError(f"reading file: {e}") from e
    return base64.b64encode(data).decode()


def compress_data(data: bytes) -> bytes:
    # mtime=0 keeps the output stable for the same input
    return gzip.compress(data, mtime=0)
