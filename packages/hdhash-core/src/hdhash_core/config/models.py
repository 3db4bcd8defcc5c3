from pydantic import BaseModel, Field, field_validator
from typing import Literal

from hdhash_core.constants import BLOCK_SIZE


class ChunkingConfig(BaseModel):
    window_size: int = Field(default=32, gt=0)
    zero_bits: int = Field(default=10, ge=0, le=32)


class ScanConfig(BaseModel):
    ignore_patterns: list[str] = Field(default_factory=lambda: [
        ".git", "__pycache__", ".venv", ".tox", ".DS_Store"
    ])
    follow_symlinks: bool = False
    read_size: int = Field(default=64 * 1024, gt=0)

    @field_validator("read_size")
    @classmethod
    def validate_read_size(cls, v: int) -> int:
        if v % BLOCK_SIZE:
            raise ValueError(f"read_size must be a multiple of {BLOCK_SIZE}, got {v}")
        return v


class HdHashConfig(BaseModel):
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
