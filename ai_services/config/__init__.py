from .loader import DEFAULT_CONFIG_TEMPLATE, load_config
from .models import AIServicesConfig, CacheConfig, ServiceSettings, StoreConfig

__all__ = [
    "AIServicesConfig",
    "CacheConfig",
    "DEFAULT_CONFIG_TEMPLATE",
    "ServiceSettings",
    "StoreConfig",
    "load_config",
]
