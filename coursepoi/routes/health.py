import platform
import time
from typing import Any, Dict

from coursepoi import __version__
from coursepoi.config import get_settings
from coursepoi.metrics import BUILD_VERSION, GIT_SHA


async def health() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "status": "ok",
        "version": BUILD_VERSION,
        "package": __version__,
        "git": GIT_SHA,
        "ts": time.time(),
        "env": {
            "provider_enabled": settings.provider_enabled,
            "store_backend": settings.store_backend,
            "freshness_days": settings.freshness_days,
        },
        "runtime": {
            "python": platform.python_version(),
        },
    }
