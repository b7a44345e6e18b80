"""
Units for strict decoding and encoding of textual representations of binary data.
"""
