"""Profiling instrumentation."""

from scan_engine.telemetry.profiling import ProfileCollector, ProfileResult, profile_operation

__all__ = ["ProfileCollector", "ProfileResult", "profile_operation"]
