"""Logging configuration for the Irys arcade bot.

Two handlers on the root logger:

1. **Console** -- :class:`SafeStreamHandler`, which never lets a console
   that cannot encode a character (emoji on a Windows code page) break a run.
2. **File** -- :class:`CompressedRotatingFileHandler` appending to the run
   log (``app.log`` by default).  The run log is never rotated unless
   ``LOG_MAX_BYTES`` is set; rotated files are then gzip-compressed.

Components never attach handlers themselves; they log through
``logging.getLogger(__name__)`` and only the entry point calls
:func:`setup_logging`.
"""

import gzip
import logging
import os
import shutil
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s - %(message)s'


class CompressedRotatingFileHandler(RotatingFileHandler):
    """Run-log handler whose backups are stored as ``<name>.N.gz``."""

    def rotation_filename(self, default_name: str) -> str:
        return f"{default_name}.gz"

    def rotate(self, source: str, dest: str) -> None:
        """Gzip *source* into *dest*, then delete *source*."""
        with open(source, 'rb') as plain, gzip.open(dest, 'wb') as packed:
            shutil.copyfileobj(plain, packed)
        os.remove(source)


class SafeStreamHandler(logging.StreamHandler):
    """Console handler that replaces characters the stream cannot encode."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record) + self.terminator
            try:
                self.stream.write(line)
            except UnicodeEncodeError:
                encoding = getattr(self.stream, "encoding", None) or "ascii"
                self.stream.write(line.encode(encoding, errors="replace").decode(encoding))
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging(
    log_level: str = "INFO",
    log_file: str = "app.log",
    max_bytes: int = 0,
    backup_count: int = 0,
) -> None:
    """Attach the console and run-log handlers to the root logger.

    Args:
        log_level: Level name; unknown names fall back to ``INFO``.
        log_file: Run log path (parent directories are created).
        max_bytes: Rotation threshold, ``0`` keeps a single append-only file.
        backup_count: Compressed backups kept when rotating.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = CompressedRotatingFileHandler(
        log_file,
        mode='a',
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8',
    )

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[file_handler, SafeStreamHandler(sys.stdout)],
        force=True,
    )
    # web3 logs every provider request at DEBUG
    logging.getLogger("web3").setLevel(max(level, logging.INFO))
