"""
This is the xorbreak package documentation. The package implements statistical attacks against
single-byte and repeating-key XOR encryption, together with a small set of command line units
that can be chained into pipelines on the shell or in Python code.

The package `xorbreak` exports all `xorbreak.units.Unit`s which are of type `xorbreak.units.Entry`;
this marker implies that the unit exposes a shell command. For convenience, the module also exports
the classes `xorbreak.units.Unit` and `xorbreak.units.Arg`.

The following modules are the best starting point:

1. `xorbreak.lib.xorcrack`: the single-byte solver, the keysize estimator and the transposition
   attack against repeating-key XOR
2. `xorbreak.lib.corpus`: how reference corpora are acquired and cached
3. `xorbreak.lib.argformats`: the multibin syntax for binary arguments such as keys
4. `xorbreak.units`: writing custom units, and how to use xorbreak units within Python code
"""
from __future__ import annotations

__version__ = '0.3.1'
__distribution__ = 'xorbreak'

import pickle

from threading import RLock
from typing import TYPE_CHECKING, TypeVar, cast

from xorbreak.lib import resources
from xorbreak.units import Arg, Unit

if TYPE_CHECKING:
    from pathlib import Path


_T = TypeVar('_T')


def _singleton(cls: type[_T]) -> _T:
    return cls()


@_singleton
class __unit_loader__:
    """
    Every unit can be imported from the xorbreak base module. The import is performed on demand to
    reduce import times. The map from unit names to their module path is cached as a pickled
    dictionary called `units.pkl` in the data directory.
    """
    units: dict[str, str]
    cache: dict[str, type[Unit]]
    _lock: RLock = RLock()

    def __init__(self):
        self.path = resources.datapath('units.pkl')
        self.reloading = False
        self.loaded = False
        self.units = {}
        self.cache = {}
        self.load()

    def __enter__(self):
        self._lock.__enter__()
        return self

    def __exit__(self, et, ev, tb):
        return self._lock.__exit__(et, ev, tb)

    def load(self):
        try:
            with self.path.open('rb') as stream:
                cache = pickle.load(stream)
        except (FileNotFoundError, EOFError, pickle.UnpicklingError):
            cache = None
        else:
            if not isinstance(cache, dict) or cache.get('version') != __version__:
                cache = None
        if cache is None:
            self.reload()
        else:
            self.units = cache['units']
            self.loaded = True

    def clear(self):
        self.loaded = False
        self.units.clear()
        self.cache.clear()

    def save(self):
        try:
            with cast('Path', self.path).open('wb') as out:
                pickle.dump({'units': self.units, 'version': __version__}, out)
        except OSError:
            pass
        self.loaded = True

    def reload(self):
        if not self.reloading:
            from xorbreak.lib.loader import get_all_entry_points
            self.reloading = True
            self.clear()
            for executable in get_all_entry_points():
                name = executable.__name__
                self.units[name] = executable.__module__
                self.cache[name] = executable
            self.save()
            self.reloading = False

    def resolve(self, name) -> type[Unit] | None:
        if not self.loaded:
            self.load()
        try:
            return self.cache[name]
        except KeyError:
            pass
        try:
            module_path = self.units[name]
            module = __import__(module_path, None, None, [name])
            entry = getattr(module, name)
        except (KeyError, ModuleNotFoundError, AttributeError):
            return None
        self.cache[name] = entry
        return entry


__all__ = sorted(__unit_loader__.units, key=lambda x: x.lower()) + [
    Unit.__name__, Arg.__name__, '__unit_loader__']


def load(name) -> type[Unit] | None:
    with __unit_loader__ as ul:
        return ul.resolve(name)


def __getattr__(name):
    with __unit_loader__ as ul:
        unit = ul.resolve(name)
    if unit is None:
        raise AttributeError(name)
    return unit


def __dir__():
    return __all__
