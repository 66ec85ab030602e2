"""
craftslot - craftsman availability checks and alternative appointment slots.
"""

__version__ = "0.1.0"
