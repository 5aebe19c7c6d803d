"""App subclasses — PracticeApp."""

from shadow_drill.l4_frameworks_and_drivers.apps.practice import PracticeApp

__all__ = ['PracticeApp']
