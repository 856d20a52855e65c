"""
Batch conversion of image folders into one PDF document per folder.
"""

__version__ = "1.0.0"
