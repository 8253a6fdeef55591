"""Core components of the automatic translation pipeline.

This package contains the cache tiers, the provider client, the content scanner, the
cycle orchestration and the composition root that wires them together.
"""

from core.system import AutoTranslateSystem

__all__: list[str] = ["AutoTranslateSystem"]
