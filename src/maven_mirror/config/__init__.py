"""Configuration models and loaders."""

from maven_mirror.config.loader import YamlConfigLoader
from maven_mirror.config.models import AppConfig, ConfigLoadRequest, LoggingSettings, MirrorSettings

__all__ = ["AppConfig", "ConfigLoadRequest", "LoggingSettings", "MirrorSettings", "YamlConfigLoader"]
