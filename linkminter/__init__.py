"""linkminter: short, time-limited tokens for long URLs."""

__version__ = '1.0.0'
