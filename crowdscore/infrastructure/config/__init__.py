from .settings import DatabaseSettings, LLMSettings, Settings, WebSettings, get_settings

__all__ = ["DatabaseSettings", "LLMSettings", "Settings", "WebSettings", "get_settings"]
