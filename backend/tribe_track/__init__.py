"""
Tribe Track - workout logging, streaks and offline sync.
"""
__version__ = "1.0.0"
