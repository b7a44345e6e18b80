"""
Units that combine the input with a key, byte by byte.
"""
