"""
Archive fetch application layer.

Wires the core download library to concrete stores and a CLI:
    storage     - RemoteStreamProvider adapters (Azure Blob, local, in-memory)
    config      - YAML + environment configuration
    cli         - ``python -m archive_fetch fetch URI``
"""

__version__ = "0.1.0"
