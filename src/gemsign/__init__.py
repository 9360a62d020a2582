"""gemsign - gemtext parsing and signed directory manifests."""

__version__ = "0.3.0"
