from .loader import ConfigError, DEFAULT_CONFIG_PATH, default_config, load_config

__all__ = ["ConfigError", "DEFAULT_CONFIG_PATH", "default_config", "load_config"]
