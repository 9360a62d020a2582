"""Tests for configuration loading."""

import os
import tempfile
from pathlib import Path

from gemsign.config import load_config
from gemsign.runtime import build_runtime


def test_load_config_defaults():
    """Test loading config with defaults when no file exists."""
    with tempfile.TemporaryDirectory() as tmpdir:
        orig_cwd = os.getcwd()
        try:
            os.chdir(tmpdir)
            config = load_config()
        finally:
            os.chdir(orig_cwd)

    assert config.manifest.signature_file == "sig.gmi"
    assert config.manifest.ignore == []
    assert config.manifest.workers == 4
    assert config.manifest.ignored == frozenset({"sig.gmi"})
    assert config.hash.chunk_size == 65536
    assert config.source is None


def test_load_config_from_file():
    """Test loading config from a file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "gemsign.toml"
        config_path.write_text("""
[manifest]
signature_file = "manifest.gmi"
ignore = [".DS_Store", "draft.gmi"]
workers = 2

[hash]
chunk_size = 1024
""")
        
        config = load_config(config_path=config_path)
        
        assert config.manifest.signature_file == "manifest.gmi"
        assert config.manifest.ignored == frozenset({".DS_Store", "draft.gmi", "manifest.gmi"})
        assert config.manifest.workers == 2
        assert config.hash.chunk_size == 1024
        assert config.source == config_path


def test_load_config_search_cwd():
    """Test config search in current working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        orig_cwd = os.getcwd()
        try:
            os.chdir(tmpdir)
            config_path = Path(tmpdir) / "gemsign.toml"
            config_path.write_text("""
[manifest]
workers = 10
""")
            
            config = load_config()
            assert config.manifest.workers == 10
        finally:
            os.chdir(orig_cwd)


def test_load_config_search_root():
    """Test config search in the directory being worked on."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "site"
        root.mkdir()
        (root / "gemsign.toml").write_text("""
[manifest]
ignore = "gemsign.toml"
""")
        
        config = load_config(root=root)
        assert config.manifest.ignore == ["gemsign.toml"]


def test_build_runtime_wires_config():
    """Runtime exposes the configured manifest settings and a parser."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "gemsign.toml"
        config_path.write_text("""
[manifest]
workers = 3
[hash]
chunk_size = 4096
""")

        rt = build_runtime(config_path=config_path)

        assert rt.workers == 3
        assert rt.chunk_size == 4096
        assert rt.ignored == frozenset({"sig.gmi"})
        assert rt.parser.parse("# T\n").title == "T"

        doc = Path(tmpdir) / "doc.gmi"
        doc.write_text("# From file\n")
        assert list(rt.parser.iter_file(doc))[0].text == "From file"
