import logging
from pathlib import Path
from typing import Optional
from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def alembic_config(database_url: Optional[str] = None) -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    # Логирование приложения уже настроено, fileConfig его не трогает
    config.attributes["configure_logger"] = False
    if database_url:
        config.attributes["database_url"] = database_url
    return config


def upgrade_database(database_url: Optional[str] = None) -> None:
    """Применяет миграции до head. Синхронная: env.py запускает свой event loop,
    поэтому из приложения вызывается через asyncio.to_thread."""
    logger.info("Применение миграций Alembic до head")
    command.upgrade(alembic_config(database_url), "head")
