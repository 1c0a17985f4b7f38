"""
Recovery Fusion - wave scheduling and risk evaluation for recovery drills.

Ranks execution waves by operational priority, detects scheduling
conflicts between them and produces a go/no-go verdict with diagnostics.
"""

__version__ = "1.0.0"
