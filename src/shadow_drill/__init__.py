"""shadow-drill — shadowing practice sessions for YouTube clips."""

__version__ = '0.1.0'
