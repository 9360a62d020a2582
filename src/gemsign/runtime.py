"""Runtime wiring helper for CLI applications."""

from dataclasses import dataclass
from pathlib import Path

from .config import GemsignConfig, load_config
from .core.ports import ParserStrategy
from .gemtext.parser import GemtextParser


@dataclass
class Runtime:
    """Container for all wired components."""
    parser: ParserStrategy
    config: GemsignConfig

    @property
    def ignored(self) -> frozenset[str]:
        return self.config.manifest.ignored

    @property
    def workers(self) -> int:
        return self.config.manifest.workers

    @property
    def chunk_size(self) -> int:
        return self.config.hash.chunk_size


def build_runtime(
    config_path: Path | None = None,
    root: Path | None = None,
) -> Runtime:
    """Build and wire all components."""
    config = load_config(config_path=config_path, root=root)
    return Runtime(parser=GemtextParser(), config=config)
