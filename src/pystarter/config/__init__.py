"""
pystarter configuration: the pystarter.yaml schema, its loader and the
values taken from the process environment.
"""

from pystarter.config.environment import (
    EnvironmentConfig,
    ensure_dotenv_loaded,
    load_environment,
    reset_environment,
)
from pystarter.config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATHS,
    ENV_VAR_OVERRIDES,
    ConfigLoader,
    ConfigurationError,
    get_config,
    get_loader,
    load_config,
    load_config_from_env,
    reload_config,
    reset_config,
)
from pystarter.config.models import (
    DependenciesConfig,
    EnvConfig,
    GitConfig,
    GitIgnoreConfig,
    Layout,
    LoggingConfig,
    LogLevel,
    ProjectConfig,
    PyPIConfig,
    PystarterConfig,
    PythonConfig,
    TestRunner,
    ToolsConfig,
)

__all__ = [
    # Config models
    "Layout",
    "TestRunner",
    "LogLevel",
    "ProjectConfig",
    "PythonConfig",
    "DependenciesConfig",
    "ToolsConfig",
    "GitConfig",
    "EnvConfig",
    "GitIgnoreConfig",
    "PyPIConfig",
    "LoggingConfig",
    "PystarterConfig",
    # Loader
    "ConfigLoader",
    "ConfigurationError",
    "load_config",
    "load_config_from_env",
    "get_config",
    "reload_config",
    "reset_config",
    "get_loader",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATHS",
    "ENV_VAR_OVERRIDES",
    # Environment
    "EnvironmentConfig",
    "load_environment",
    "ensure_dotenv_loaded",
    "reset_environment",
]
