"""
infrabase - the machine inventory system
"""

__version__ = "0.1.0"
