"""
Implements block ciphers on top of the pycryptodomex library.
"""
