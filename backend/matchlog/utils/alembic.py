import fcntl
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from alembic.config import Config

from alembic import command
from matchlog.config import config
from matchlog.utils.logging import logger


@contextmanager
def migration_lock(lock_path: str) -> Iterator[None]:
    """Hold an exclusive file lock, so only one of several booting workers migrates at a time."""
    Path(lock_path).parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "a", encoding="utf-8") as lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file, fcntl.LOCK_UN)


def get_alembic_config() -> Config:
    return Config(config.alembic_ini_path)


def alembic_run_migrations(revision: str = "head") -> None:
    with migration_lock(config.migration_lock_path):
        logger.info("Upgrading document tables to revision %s", revision)
        command.upgrade(get_alembic_config(), revision)
        logger.info("Document tables are at revision %s", revision)
