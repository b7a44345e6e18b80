from __future__ import annotations

import importlib

from typing import Type

from .. import xorbreak, TestBase, NameUnknownException
from xorbreak.units import Entry
from xorbreak.lib.environment import LogLevel

__all__ = ['xorbreak', 'TestUnitBase', 'NameUnknownException']


class TestUnitBase(TestBase):

    @staticmethod
    def _relative_module_path(path: str, strip_test=True):
        path = path.split('.')
        path = path[1:]
        if strip_test:
            path = [x[4:].lstrip('_-.') if x.startswith('test') else x for x in path]
        return '.'.join(path)

    @classmethod
    def unit(cls) -> Type[xorbreak.Unit]:
        name = cls._relative_module_path(cls.__module__)
        try:
            module = importlib.import_module(F'xorbreak.{name}')
        except ImportError:
            pass
        else:
            for object in vars(module).values():
                if isinstance(object, type) and issubclass(object, Entry) and object.__module__ == module.__name__:
                    return object
        basename = name.rsplit('.', 1)[-1]
        entry = xorbreak.load(basename)
        if entry is None:
            raise NameUnknownException(name)
        return entry

    @classmethod
    def load(cls, *args, **kwargs) -> xorbreak.Unit:
        unit = cls.unit().assemble(*args, **kwargs)
        unit.log_level = LogLevel.DETACHED
        return unit
