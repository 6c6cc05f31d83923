from .config import SDK_CONFIG, AppConfig

__all__ = ["SDK_CONFIG", "AppConfig"]
