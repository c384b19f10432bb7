"""
Services module - Application business logic layer.

Modules:
- track: Workout logs, streaks and stats aggregation
"""
