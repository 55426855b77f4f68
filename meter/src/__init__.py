"""
Telemetry binding and aggregation engine for a three-phase meter dashboard.

Binds the host's ordered channel ids to fixed meter roles, resolves live
readings with safe defaults, derives summary figures, and keeps short rolling
histories per metric group for the external chart renderer.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""
