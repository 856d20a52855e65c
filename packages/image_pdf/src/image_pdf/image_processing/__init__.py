"""
Image-side collaborators: dimension probing and pre-compression.
"""
