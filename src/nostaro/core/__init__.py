"""Core layer: local cache, configuration, logging, errors, and metrics.

Sits in the middle of the diamond DAG -- depends only on ``nostaro.models``
and is depended upon by ``nostaro.services`` and the CLI.

Attributes:
    CacheStore: SQLite-backed store of fetched events and profiles.
        See [CacheStore][nostaro.core.cache.CacheStore].
    NostaroConfig: Pydantic model persisted as ``config.yaml``.
        See [NostaroConfig][nostaro.core.config.NostaroConfig].
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][nostaro.core.logger.Logger].
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint.
        See [MetricsServer][nostaro.core.metrics.MetricsServer].

Examples:
    ```python
    from nostaro.core import CacheStore, NostaroConfig, resolve_config_dir

    config_dir = resolve_config_dir()
    config = NostaroConfig.load(config_dir)
    with CacheStore(config_dir / "cache.db") as cache:
        print(cache.stats())
    ```
"""

from .cache import CacheStore
from .config import (
    CACHE_FILENAME,
    CONFIG_FILENAME,
    DEFAULT_RELAYS,
    NostaroConfig,
    resolve_config_dir,
)
from .exceptions import (
    ConfigurationError,
    DeliveryError,
    NostaroError,
    PaymentError,
    ProtocolError,
    PublishingError,
    StorageError,
    UploadError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs, setup_logging
from .metrics import MetricsConfig, MetricsServer
from .yaml import load_yaml, save_yaml


__all__ = [
    "CACHE_FILENAME",
    "CONFIG_FILENAME",
    "DEFAULT_RELAYS",
    "CacheStore",
    "ConfigurationError",
    "DeliveryError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "NostaroConfig",
    "NostaroError",
    "PaymentError",
    "ProtocolError",
    "PublishingError",
    "StorageError",
    "StructuredFormatter",
    "UploadError",
    "format_kv_pairs",
    "load_yaml",
    "resolve_config_dir",
    "save_yaml",
    "setup_logging",
]
