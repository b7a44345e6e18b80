"""
This package contains all xorbreak units. To write an executable unit, it is sufficient to write a
class inheriting from `xorbreak.units.Unit` and implement `xorbreak.units.Unit.process`. If the
operation implemented by this unit should be reversible, then a method called `reverse` with the
same signature has to be implemented. For example, the following would be a minimalistic approach
to implement `xorbreak.hex`:

    from xorbreak.units import Unit

    class hex(Unit):
        def process(self, data): return bytes.fromhex(data.decode('ascii'))
        def reverse(self, data): return data.hex().encode(self.codec)

### Command Line Parameters

Command line parameters of a unit are derived from the signature of its initialization routine.
The parameters can be annotated with an `xorbreak.units.Arg` to control how they are parsed:

    from xorbreak.lib.types import Param, buf
    from xorbreak.units import Arg, Unit

    class myxor(Unit):
        def __init__(self, key: Param[buf, Arg.Binary(help='Encryption key')]):
            super().__init__(key=key)

        def process(self, data: bytearray):
            for k, b in enumerate(data):
                data[k] ^= self.args.key[k % len(self.args.key)]
            return data

The `__init__` has to forward all parameters to the parent class, after which they are available
as the attributes of the `args` member. Each unit also has a set of generic options, such as `-v`
to increase the verbosity of the log output.

### Units in Code

Units can be used in Python code in nearly the same way as on the command line. The binary or
operator `|` combines units into pipelines, and combining a pipeline from the left with a byte
string or a binary stream feeds this data into the first unit. On the right hand side, a pipeline
can be connected to `bytes`, `bytearray` or `str` to obtain its output, to a list containing one
such type to obtain the list of all output chunks, to any writable binary stream, or to a callable
that receives the output. Unary negation of a reversible unit selects the reverse operation:

    >>> from xorbreak import hex, xor
    >>> B'HELLO WORLD' | xor(B'KEY') | -hex | str
    '030015070a791c0a0b0701'

When used in code, a unit does not log errors but raises them as exceptions.
"""
from __future__ import annotations

import abc
import functools
import inspect
import os
import sys

from argparse import OPTIONAL, Namespace
from typing import Any, BinaryIO, Callable, Iterable, Iterator, Optional, Union

from xorbreak.lib.argformats import multibin, number, sliceobj
from xorbreak.lib.argparser import ArgparseError, ArgumentParserWithKeywordHooks
from xorbreak.lib.environment import Logger, LogLevel, environment, logger
from xorbreak.lib.exceptions import (
    XorBreakCriticalException,
    XorBreakException,
    XorBreakPotentialUserError,
)
from xorbreak.lib.tools import (
    autoinvoke,
    documentation,
    exception_to_string,
    get_terminal_size,
    isbuffer,
    normalize_to_display,
    skipfirst,
)
from xorbreak.lib.types import buf

__all__ = [
    'Arg',
    'Entry',
    'Executable',
    'Unit',
]


class Entry:
    """
    An empty class marker. Any entry point unit (i.e. any unit that can be executed
    via the command line) is an instance of this class.
    """


class Argument:
    """
    This class implements an abstract argument to a Python function, including positional
    and keyword arguments. Passing an `Argument` to a Python function can be done via the
    matrix multiplication operator: The syntax `function @ Argument(a, b, kwd=c)` is
    equivalent to the call `function(a, b, kwd=c)`.
    """
    __slots__ = 'args', 'kwargs'

    args: list[Any]
    kwargs: dict[str, Any]

    def __init__(self, *args, **kwargs):
        self.args = list(args)
        self.kwargs = kwargs

    def __rmatmul__(self, method):
        return method(*self.args, **self.kwargs)

    def __repr__(self):
        arglist = [repr(a) for a in self.args]
        arglist.extend(F'{key!s}={value!r}' for key, value in self.kwargs.items())
        return ', '.join(arglist)


class Arg(Argument):
    """
    This class is specifically an argument for the `add_argument` method of an `ArgumentParser` from
    the `argparse` module. It is used as an annotation for the constructor of a unit to control the
    argument parser of that unit's command line interface. Example:
    ```
    class prefixer(Unit):
        def __init__(
            self,
            prefix: Param[buf, Arg.Binary(help='This data will be prepended to the input.')]
        ):
            super().__init__(prefix=prefix)
        def process(self, data):
            return self.args.prefix + data
    ```
    """

    class omit:
        """
        A sentinel class to mark arguments as omitted for the argument parser.
        """

    args: list[str]

    def __init__(
        self, *args: str,
        action   : type[omit] | str                       = omit,  # noqa
        choices  : type[omit] | Iterable[Any]             = omit,  # noqa
        default  : type[omit] | Any                       = omit,  # noqa
        dest     : type[omit] | str                       = omit,  # noqa
        help     : type[omit] | str                       = omit,  # noqa
        metavar  : type[omit] | str                       = omit,  # noqa
        nargs    : type[omit] | int | str                 = omit,  # noqa
        type     : type[omit] | type | Callable           = omit,  # noqa
    ) -> None:
        kwargs = dict(action=action, choices=choices, default=default, dest=dest,
            help=help, metavar=metavar, nargs=nargs, type=type)
        kwargs = {key: value for key, value in kwargs.items() if value is not self.omit}
        super().__init__(*args, **kwargs)

    @classmethod
    def Switch(
        cls,
        *args   : str, off=False,
        help    : type[omit] | str = omit,
    ):
        """
        A convenience method to add argparse arguments that change a boolean value from True to False or
        vice versa. By default, a switch will have a False default and change it to True when specified.
        """
        return cls(*args, help=help, action='store_false' if off else 'store_true')

    @classmethod
    def Binary(
        cls,
        *args   : str,
        help    : type[omit] | str = omit,
        metavar : type[omit] | str = omit,
    ):
        """
        Used to add argparse arguments that contain binary data.
        """
        if metavar is cls.omit and any('-' in a for a in args):
            metavar = 'B'
        return cls(*args, help=help, type=multibin, metavar=metavar)

    @classmethod
    def String(
        cls,
        *args   : str,
        help    : type[omit] | str = omit,
        metavar : type[omit] | str = omit,
    ):
        """
        Used to add argparse arguments that contain string data.
        """
        if metavar is cls.omit and any('-' in a for a in args):
            metavar = 'STR'
        return cls(*args, help=help, type=str, metavar=metavar)

    @classmethod
    def Number(
        cls,
        *args   : str,
        help    : type[omit] | str = omit,
        metavar : type[omit] | str = omit,
    ):
        """
        Used to add argparse arguments that contain a number.
        """
        if metavar is cls.omit:
            metavar = 'N'
        return cls(*args, help=help, type=number, metavar=metavar)

    @classmethod
    def Bounds(
        cls,
        *args   : str,
        help    : type[omit] | str | None = None,
        metavar : type[omit] | str = 'start:end',
    ):
        """
        Used to add argparse arguments that contain a slice.
        """
        if help is None:
            help = 'Specify start:end in Python slice syntax. The default is {default}.'
        return cls(*args, help=help, type=sliceobj, metavar=metavar)

    @property
    def positional(self) -> bool:
        """
        Indicates whether the argument is positional. This is crudely determined by whether it has
        a specifier that does not start with a dash.
        """
        return any(a[0] != '-' for a in self.args)

    @property
    def destination(self) -> str:
        """
        The name of the variable where the contents of this parsed argument will be stored.
        """
        for a in self.args:
            if a[0] != '-':
                return a
        return self.kwargs['dest']

    def update_help(self):
        """
        Fill the `{default}` formatting symbol of the help text with the actual default value.
        """
        if 'help' not in self.kwargs:
            return
        default = self.kwargs.get('default', None)
        if isinstance(default, slice):
            default = ':'.join('' if v is None else str(v) for v in (default.start, default.stop))
        elif isbuffer(default):
            default = bytes(default).decode('utf8', 'replace') or 'empty'
        self.kwargs['help'] = self.kwargs['help'].format(default=default)

    @classmethod
    def Infer(cls, pt: inspect.Parameter, module: Optional[str] = None) -> Arg:
        """
        This class method can be used to infer the argparse argument for a Python function
        parameter. This guess is based on the annotation, name, and default value.
        """
        annotation = pt.annotation
        if isinstance(annotation, str):
            namespace = vars(sys.modules[module]) if module in sys.modules else {}
            try:
                annotation = eval(annotation, namespace)
            except Exception:
                annotation = pt.empty

        if isinstance(annotation, Arg):
            args = list(annotation.args)
            kwargs = dict(annotation.kwargs)
        else:
            args = []
            kwargs = {}

        if not args:
            name = normalize_to_display(pt.name, False)
            args.append(F'--{name}' if pt.kind is pt.KEYWORD_ONLY else pt.name)

        default = pt.default
        positional = any(a[0] != '-' for a in args)

        if not positional:
            kwargs['dest'] = pt.name
            if not any(a.startswith('--') for a in args):
                args.append(F'--{normalize_to_display(pt.name, False)}')

        if default is not pt.empty:
            kwargs.setdefault('default', default)
            if isinstance(default, bool):
                kwargs.setdefault('action', F'store_{not default!s}'.lower())
            elif positional:
                kwargs.setdefault('nargs', OPTIONAL)
            if kwargs.get('action', 'store') == 'store' and 'type' not in kwargs:
                if isinstance(default, slice):
                    kwargs['type'] = sliceobj
                elif isinstance(default, int):
                    kwargs['type'] = number
                elif isbuffer(default):
                    kwargs['type'] = multibin
        elif kwargs.get('action', 'store') == 'store':
            kwargs.setdefault('type', multibin)

        if kwargs.get('action', 'store').startswith('store_'):
            kwargs.pop('type', None)
            kwargs.pop('metavar', None)

        arg = cls(*args, **kwargs)
        arg.update_help()
        return arg


class Executable(abc.ABCMeta):
    """
    This is the metaclass for units. A class which is of this type is required to implement a method
    `run()`. If the class is created in the currently executing module, then an instance of the class
    is automatically created after it is defined and its `run()` method is invoked.
    """

    Entry = None
    """
    This variable stores the executable entry point. If more than one entry point are present, only
    the first one is executed.
    """

    _argument_specification: dict[str, Arg]

    def __new__(mcs, name: str, bases: tuple[type, ...], nmspc: dict[str, Any], abstract=False):
        if not abstract and Entry not in bases:
            bases = bases + (Entry,)
        nmspc.setdefault('__doc__', '')
        return super().__new__(mcs, name, bases, nmspc)

    def __init__(cls, name: str, bases: tuple[type, ...], nmspc: dict[str, Any], abstract=False):
        super().__init__(name, bases, nmspc)
        cls._argument_specification = args = {}

        sig_init = inspect.signature(cls.__init__)
        parameters = sig_init.parameters
        has_keyword = any(p.kind is p.VAR_KEYWORD for p in parameters.values())
        own_init = '__init__' in nmspc
        inherited = []

        for base in bases:
            spec: Optional[dict[str, Arg]] = getattr(base, '_argument_specification', None)
            if spec is None:
                continue
            for key, value in spec.items():
                if key in parameters:
                    args[key] = value

        if not abstract and bases and has_keyword:
            for key, value in bases[0]._argument_specification.items():
                if key not in args:
                    args[key] = value
                    inherited.append(key)

        for pt in skipfirst(parameters.values()):
            if pt.kind in (pt.VAR_KEYWORD, pt.VAR_POSITIONAL):
                continue
            if pt.name in args and (not own_init or pt.annotation is pt.empty):
                continue
            args[pt.name] = Arg.Infer(pt, cls.__module__)

        if not abstract and has_keyword:
            # expose the options inherited through **keywords in the signature of the class, so
            # that they are forwarded by assemble
            cls__init__ = cls.__init__

            @functools.wraps(cls__init__)
            def new__init__(self, *args, **kwargs):
                cls__init__(self, *args, **kwargs)

            params = [p for p in parameters.values() if p.kind is not p.VAR_KEYWORD]
            if inherited:
                pp = inspect.signature(bases[0].__init__).parameters
                params.extend(pp[name].replace(kind=inspect.Parameter.KEYWORD_ONLY) for name in inherited)
            new__init__.__signature__ = sig_init.replace(parameters=tuple(params))
            cls.__init__ = new__init__

        if not abstract and sys.modules[cls.__module__].__name__ == '__main__':
            if not Executable.Entry:
                Executable.Entry = cls.name
                cls.run()

    def __or__(cls, other):
        return cls().__or__(other)

    def __neg__(cls):
        unit: Unit = cls()
        unit.args.reverse = True
        return unit

    def __ror__(cls, other) -> Unit:
        return cls().__ror__(other)

    @property
    def is_reversible(cls) -> bool:
        """
        This property is `True` if and only if the unit has a member function named `reverse`. By
        convention, this member function implements the inverse of `xorbreak.units.Unit.process`.
        """
        return cls.reverse is not Unit.reverse

    @property
    def codec(cls) -> str:
        """
        The default codec for encoding textual information between units. The value of this property
        is hardcoded to `UTF8`.
        """
        return 'UTF8'

    @property
    def name(cls) -> str:
        """
        The name of the unit as it would be used on the command line.
        """
        return normalize_to_display(cls.__name__)

    @property
    def logger(cls) -> Logger:
        """
        The debug logger instance for the unit.
        """
        try:
            return cls.__dict__['_logger']
        except KeyError:
            pass
        cls._logger = _logger = logger(cls.name)
        return _logger


class Unit(metaclass=Executable, abstract=True):
    """
    The base class for all xorbreak units. It implements a small set of globally available options
    and the handling of inputs and outputs.
    """
    _source: Union[None, buf, BinaryIO, Unit]

    @abc.abstractmethod
    def process(self, data: bytearray) -> Union[None, buf, Iterable[buf]]:
        """
        This routine is overridden by children of `xorbreak.units.Unit` to define how the unit
        processes a given chunk of binary data.
        """

    def reverse(self, data: bytearray) -> Union[None, buf, Iterable[buf]]:
        """
        If this routine is overridden by children of `xorbreak.units.Unit`, then it must implement
        an operation that reverses the `xorbreak.units.Unit.process` operation.
        """
        raise NotImplementedError

    @property
    def is_reversible(self) -> bool:
        return self.__class__.is_reversible

    @property
    def codec(self) -> str:
        return self.__class__.codec

    @property
    def name(self) -> str:
        return self.__class__.name

    @property
    def logger(self) -> Logger:
        return self.__class__.logger

    @property
    def is_quiet(self) -> bool:
        """
        Returns whether the global `--quiet` flag is set, indicating that the unit should not
        generate any log output.
        """
        return getattr(self.args, 'quiet', False)

    @property
    def leniency(self) -> int:
        """
        Returns the value of the global `--lenient` flag.
        """
        return getattr(self.args, 'lenient', 0)

    @property
    def log_level(self) -> LogLevel:
        """
        Returns the current log level as an element of `xorbreak.lib.environment.LogLevel`.
        """
        if self.is_quiet:
            return LogLevel.NONE
        return LogLevel(self.logger.getEffectiveLevel())

    @log_level.setter
    def log_level(self, value: Union[int, LogLevel]) -> None:
        if not isinstance(value, LogLevel):
            value = LogLevel.FromVerbosity(value)
        self.logger.setLevel(value)

    def log_detach(self) -> Unit:
        """
        Detach the unit from its logger. This means that any exceptions that occur during runtime
        will be raised to the caller.
        """
        self.log_level = LogLevel.DETACHED
        return self

    def _exception_handler(self, exception: BaseException, data: Optional[buf]):
        if self.leniency >= 1 and data is not None:
            return data
        if self.log_level >= LogLevel.DETACHED:
            raise exception
        if isinstance(exception, XorBreakCriticalException):
            self.log_warn(F'critical error, terminating: {exception}')
            raise exception
        if isinstance(exception, XorBreakPotentialUserError):
            self.log_warn(exception_to_string(exception))
        elif isinstance(exception, XorBreakException):
            self.log_fail(exception_to_string(exception))
        else:
            explanation = str(exception).strip()
            message = F'exception of type {exception.__class__.__name__}'
            if explanation:
                message = F'{message}; {explanation!s}'
            self.log_fail(message)
        if self.log_debug():
            import traceback
            traceback.print_exc(file=sys.stderr)
        return None

    def act(self, data: buf) -> Iterator[buf]:
        """
        Apply the unit to one input chunk and generate all output chunks.
        """
        data = bytearray(data)
        operation = self.reverse if self.args.reverse else self.process
        try:
            result = operation(data)
            if result is None:
                return
            if isbuffer(result):
                yield result
                return
            yield from list(result)
        except Exception as E:
            if (fallback := self._exception_handler(E, data)) is not None:
                yield fallback

    def _inputs(self) -> Iterator[buf]:
        source = self._source
        if source is None:
            return
        if isinstance(source, Unit):
            yield from source
        elif isbuffer(source):
            yield source
        elif hasattr(source, 'read'):
            yield source.read()
        else:
            raise TypeError(F'unable to read input of type {type(source).__name__}')

    def __iter__(self) -> Iterator[buf]:
        for data in self._inputs():
            yield from self.act(data)

    def __call__(self, data: Optional[buf] = None) -> bytes:
        if data is not None:
            self.__ror__(data)
        return B''.join(self)

    def __ror__(self, stream: Union[buf, BinaryIO, Unit, None]) -> Unit:
        if isinstance(stream, str):
            stream = stream.encode(self.codec)
        if isinstance(self._source, Unit) and stream is not None:
            # feed the first unit of the pipeline
            self._source.__ror__(stream)
        else:
            self._source = stream
        return self

    def __or__(self, stream):
        if isinstance(stream, Unit):
            return stream.__ror__(self)
        if isinstance(stream, type) and issubclass(stream, Unit):
            return stream().__ror__(self)
        if stream is None:
            for _ in self:
                pass
            return None
        if stream in (bytes, bytearray):
            return stream(B''.join(self))
        if stream is str:
            return B''.join(self).decode(self.codec)
        if isinstance(stream, list) and len(stream) == 1:
            convert = stream[0]
            return [convert(chunk) if convert is not str else bytes(chunk).decode(self.codec) for chunk in self]
        if hasattr(stream, 'write'):
            for chunk in self:
                stream.write(chunk)
            return stream
        if callable(stream):
            return stream(B''.join(self))
        raise TypeError(F'unable to connect unit {self.name} to object of type {type(stream).__name__}')

    def __neg__(self) -> Unit:
        self.args.reverse = not self.args.reverse
        return self

    @classmethod
    def log_fail(cls, *messages, clip=False) -> bool:
        """
        Log the message if and only if the current log level is at least `xorbreak.lib.environment.LogLevel.ERROR`.
        """
        rv = cls.logger.isEnabledFor(LogLevel.ERROR)
        if rv and messages:
            cls.logger.error(cls._output(*messages, clip=clip))
        return rv

    @classmethod
    def log_warn(cls, *messages, clip=False) -> bool:
        """
        Log the message if and only if the current log level is at least `xorbreak.lib.environment.LogLevel.WARN`.
        """
        rv = cls.logger.isEnabledFor(LogLevel.WARNING)
        if rv and messages:
            cls.logger.warning(cls._output(*messages, clip=clip))
        return rv

    @classmethod
    def log_info(cls, *messages, clip=False) -> bool:
        """
        Log the message if and only if the current log level is at least `xorbreak.lib.environment.LogLevel.INFO`.
        """
        rv = cls.logger.isEnabledFor(LogLevel.INFO)
        if rv and messages:
            cls.logger.info(cls._output(*messages, clip=clip))
        return rv

    @classmethod
    def log_debug(cls, *messages, clip=False) -> bool:
        """
        Log the message if and only if the current log level is at least `xorbreak.lib.environment.LogLevel.DEBUG`.
        """
        rv = cls.logger.isEnabledFor(LogLevel.DEBUG)
        if rv and messages:
            cls.logger.debug(cls._output(*messages, clip=clip))
        return rv

    @classmethod
    def _output(cls, *messages, clip=False) -> str:
        def transform(message):
            if callable(message):
                message = message()
            if isinstance(message, Exception):
                message = exception_to_string(message)
            if isinstance(message, str):
                return message
            if isbuffer(message):
                pmsg = bytes(message).decode(cls.codec, 'surrogateescape')
                if not pmsg.isprintable():
                    pmsg = bytes(message).hex().upper()
                return pmsg
            else:
                import pprint
                return pprint.pformat(message)
        message = ' '.join(transform(msg) for msg in messages)
        if clip:
            length = get_terminal_size(75) - len(cls.name) - 27
            if len(message) > length:
                message = message[:length] + '...'
        return message

    @classmethod
    def _interface(cls, argp: ArgumentParserWithKeywordHooks) -> ArgumentParserWithKeywordHooks:
        """
        Receives a reference to an argument parser. This parser will be used to parse
        the command line for this unit into the member variable called `args`.
        """
        base = argp.add_argument_group('generic options')

        base.set_defaults(reverse=False)
        base.add_argument('-h', '--help', action='help', help='Show this help message and exit.')
        base.add_argument('-L', '--lenient', action='count', default=0,
            help='Return the input unchanged when processing fails.')
        base.add_argument('-Q', '--quiet', action='store_true', help='Disables all log output.')
        base.add_argument('-v', '--verbose', action='count', default=0,
            help='Specify up to two times to increase log level.')

        if cls.is_reversible:
            base.add_argument('-R', '--reverse', action='store_true',
                help='Use the reverse operation.')

        for argument in cls._argument_specification.values():
            try:
                _ = argp.add_argument @ argument
            except Exception as E:
                raise XorBreakCriticalException(F'Failed to queue argument: {argument!s}; {E!s}')

        return argp

    @classmethod
    def argparser(cls, **keywords):
        argp = ArgumentParserWithKeywordHooks(
            keywords, prog=cls.name, description=documentation(cls), add_help=False)
        return cls._interface(argp)

    @classmethod
    def assemble(cls, *_args: str, **keywords):
        """
        Creates a unit from the given arguments and keywords. The given keywords are used to overwrite any
        previously specified defaults for the argument parser of the unit, then this modified parser is
        used to parse the given list of arguments as though they were given on the command line. The parser
        results are used to construct an instance of the unit, this object is consequently returned.
        """
        argp = cls.argparser(**keywords)
        args = argp.parse_args_with_keywords(_args)

        try:
            unit = autoinvoke(cls, dict(args.__dict__))
        except ValueError as E:
            argp.error(str(E))
        else:
            unit.args.quiet = args.quiet
            unit.args.lenient = args.lenient
            unit.args.reverse = args.reverse
            unit.args.verbose = args.verbose

            if args.quiet:
                unit.log_level = LogLevel.NONE
            else:
                unit.log_level = args.verbose

            return unit

    def __init__(self, **keywords):
        self._source = None
        for key, value in dict(
            reverse=False,
            verbose=0,
            lenient=0,
            quiet=False,
        ).items():
            keywords.setdefault(key, value)
        self.args = Namespace(**keywords)
        self.log_detach()

    @classmethod
    def run(cls, argv=None, stream=None) -> None:
        """
        Implements command line execution. As `xorbreak.units.Unit` is an `xorbreak.units.Executable`,
        this method will be executed when a class inheriting from `xorbreak.units.Unit` is defined in
        the current `__main__` module.
        """
        argv = argv if argv is not None else sys.argv[1:]

        if stream is None:
            stream = open(os.devnull, 'rb') if sys.stdin.isatty() else sys.stdin.buffer

        with stream as source:
            try:
                unit = cls.assemble(*argv)
            except ArgparseError as ap:
                ap.parser.error_commandline(str(ap))
                return
            except Exception as msg:
                cls.logger.critical(cls._output('initialization failed:', msg))
                return

            loglevel = environment.verbosity.value
            if loglevel:
                unit.log_level = loglevel

            try:
                _ = source | unit | sys.stdout.buffer
            except KeyboardInterrupt:
                unit.logger.warning('aborting due to keyboard interrupt')
            except BrokenPipeError:
                pass
