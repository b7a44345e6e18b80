import logging
import random
import string
import unittest

import xorbreak

from xorbreak.lib.corpus import bundled_text


__all__ = ['xorbreak', 'TestBase', 'NameUnknownException']


class NameUnknownException(Exception):
    def __init__(self, name):
        super().__init__('could not resolve: {}'.format(name))


class TestBase(unittest.TestCase):

    def ldu(self, name, *args, **kwargs):
        import xorbreak.lib.loader
        unit = xorbreak.lib.loader.load(name, *args, **kwargs)
        if not unit.args.quiet:
            unit.log_detach()
        return unit

    def generate_random_buffer(self, size):
        return bytes(random.randrange(0, 0x100) for _ in range(size))

    def generate_random_text(self, size):
        return ''.join(string.printable[
            random.randrange(0, len(string.printable))] for _ in range(size)).encode('UTF8')

    def english_text(self, size=None):
        text = bundled_text().split('\n\n', 1)[1]
        if size is not None:
            text = text[:size]
        return text

    def setUp(self):
        random.seed(0xBAADF00D)  # guarantee deterministic 'random' buffers
        logging.disable(logging.CRITICAL)

    def assertContains(self, container, member, msg=None):
        self.assertIn(member, container, msg)

    @classmethod
    def load_pipeline(cls, cmd: str, clear_cache=False) -> xorbreak.Unit:
        from xorbreak.units import Unit
        from xorbreak.lib.environment import LogLevel
        from xorbreak.lib.loader import load_pipeline
        if clear_cache:
            load_pipeline.cache_clear()
        unit = pl = load_pipeline(cmd)
        while isinstance(unit, Unit):
            unit.log_level = LogLevel.DETACHED
            unit = unit._source
        return pl
