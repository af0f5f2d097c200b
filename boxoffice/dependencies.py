from functools import lru_cache

from boxoffice.config import EngineConfig, settings


@lru_cache()
def get_engine_config() -> EngineConfig:
    """Engine configuration built once from settings"""
    return settings.engine_config()
