from fitclub.core.config import settings
from fitclub.core.base import Base
from fitclub.core.db import engine, get_db

__all__ = ["settings", "engine", "Base", "get_db"]
