"""TinyCMS: a headless content-management core.

Collections are declared once, in Python or YAML, and every document
operation runs through TinyCMS, which applies access rules, lifecycle
hooks and field validation around a storage adapter.
"""

__version__ = "0.1.0"

from tinycms.cms import FindResult, TinyCMS, create_cms  # noqa: E402
from tinycms.config import Config, Settings, build_config  # noqa: E402

__all__ = [
    "Config",
    "FindResult",
    "Settings",
    "TinyCMS",
    "__version__",
    "build_config",
    "create_cms",
]
