"""
Utility modules for the recovery fusion engine.

Import directly from specific modules to avoid circular dependencies.

Example:
    from recovery_fusion.utils.logging_config import get_logger
    from recovery_fusion.utils.scoring import clamp
"""

from recovery_fusion.utils.logging_config import get_logger, setup_logger

__all__ = [
    "setup_logger",
    "get_logger",
]
