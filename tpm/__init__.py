"""tpm - Terminus Plugin Manager.

Install, list, update, remove and search for Terminus plugins that live in
external Git repositories.
"""

__version__ = "1.0.0"

from tpm.config import TpmConfig
from tpm.marketplace.manager import PluginManager

__all__ = [
    "__version__",
    "TpmConfig",
    "PluginManager",
]
