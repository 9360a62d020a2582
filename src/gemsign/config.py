"""Configuration loader for gemsign.toml."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from .manifest.builder import DEFAULT_SIGNATURE_FILE, DEFAULT_WORKERS
from .manifest.hashing import DEFAULT_CHUNK_SIZE

CONFIG_NAME = "gemsign.toml"


@dataclass
class ManifestConfig:
    """Manifest building configuration."""
    signature_file: str = DEFAULT_SIGNATURE_FILE
    ignore: list[str] = field(default_factory=list)
    workers: int = DEFAULT_WORKERS

    @property
    def ignored(self) -> frozenset[str]:
        return frozenset(self.ignore) | {self.signature_file}


@dataclass
class HashConfig:
    """Hashing configuration."""
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass
class GemsignConfig:
    """Complete gemsign configuration."""
    manifest: ManifestConfig
    hash: HashConfig
    source: Path | None = None


def load_config(config_path: Path | None = None, root: Path | None = None) -> GemsignConfig:
    """
    Load configuration from gemsign.toml.
    
    Search order:
    1. config_path (if provided)
    2. cwd/gemsign.toml
    3. root/gemsign.toml
    
    Args:
        config_path: Explicit path to config file
        root: Directory being worked on, for fallback search
    
    Returns:
        GemsignConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}
    source = None
    
    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_NAME)
    if root:
        search_paths.append(root / CONFIG_NAME)
    
    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            source = path
            break
    
    manifest_data = toml_data.get("manifest", {})
    ignore = manifest_data.get("ignore", [])
    if isinstance(ignore, str):
        ignore = [ignore]
    manifest_config = ManifestConfig(
        signature_file=manifest_data.get("signature_file", DEFAULT_SIGNATURE_FILE),
        ignore=list(ignore),
        workers=int(manifest_data.get("workers", DEFAULT_WORKERS)),
    )
    
    hash_data = toml_data.get("hash", {})
    hash_config = HashConfig(
        chunk_size=int(hash_data.get("chunk_size", DEFAULT_CHUNK_SIZE))
    )
    
    return GemsignConfig(
        manifest=manifest_config,
        hash=hash_config,
        source=source,
    )
