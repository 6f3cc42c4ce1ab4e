"""
Depot - self-hosted storage tree.

The filesystem under the storage root is the only record store; every
listing is rebuilt from disk.
"""

from depot import Config
from depot import StorageGate

__version__ = "1.0.0"

__all__ = ["Config", "StorageGate", "__version__"]
