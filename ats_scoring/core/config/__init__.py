from __future__ import annotations

from ats_scoring.core.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
