"""Hiring platform backend: hierarchical access and resource inheritance"""

__version__ = "1.0.0"
