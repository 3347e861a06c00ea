"""Ресурсы процесса вокруг запуска: файл блокировки и каталог результатов."""
from __future__ import annotations

import fcntl
import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

DEFAULT_LOCK_FILE = Path("/tmp/imaginary-cities.lock")


@contextmanager
def process_lock(lock_path: str | Path = DEFAULT_LOCK_FILE) -> Iterator[bool]:
    """Эксклюзивная неблокирующая блокировка процесса.

    Отдаёт `False`, если блокировку уже держит другой процесс; иначе `True`
    и снимает блокировку при выходе.
    """
    path = Path(lock_path)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT, 0o640)
    acquired = False
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            acquired = True
        except BlockingIOError:
            logger.info("%s is held by another process", path)
        yield acquired
    finally:
        # файл не удаляется: иначе два процесса могут держать flock на разных inode
        os.close(fd)


def prepare_destination(dst_path: str | Path, wipe: bool = False) -> Path:
    """Создаёт каталог результатов (0750), при `wipe` предварительно очищает."""
    path = Path(dst_path)
    if wipe and path.exists():
        logger.info("wiping %s", path)
        shutil.rmtree(path)
    path.mkdir(mode=0o750, parents=True, exist_ok=True)
    return path
