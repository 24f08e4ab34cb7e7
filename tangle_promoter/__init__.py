"""Tangle bundle promoter: keeps unconfirmed bundles moving until they confirm."""

__version__ = "0.1.0"
