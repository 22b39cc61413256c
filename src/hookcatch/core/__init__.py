from hookcatch.core.config import (
    ReceiverConfig,
    clear_config,
    flatten_config,
    get_config,
    load_config_from_file,
)
from hookcatch.core.logging import configure_logging

__all__ = [
    "ReceiverConfig",
    "clear_config",
    "configure_logging",
    "flatten_config",
    "get_config",
    "load_config_from_file",
]
