"""
dvdrip - optical disc ripping into an organized media library
"""

__version__ = "0.1.0"
