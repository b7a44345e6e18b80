"""
Data resources shipped with xorbreak.
"""
