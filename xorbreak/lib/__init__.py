"""
Library modules used by the xorbreak units. The statistical core lives in
`xorbreak.lib.frequency`, `xorbreak.lib.stats` and `xorbreak.lib.xorcrack`; it has no
dependency on the unit framework and can be used on its own.
"""
