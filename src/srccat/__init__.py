"""
srccat - flatten a source tree into text, JSON or a path list.
"""

__version__ = "0.1.0"
