"""
PDF page composition and document assembly.
"""
