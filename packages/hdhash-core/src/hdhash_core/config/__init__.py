from .loader import load_config
from .models import ChunkingConfig, HdHashConfig, ScanConfig

__all__ = [
    "ChunkingConfig",
    "HdHashConfig",
    "ScanConfig",
    "load_config",
]
