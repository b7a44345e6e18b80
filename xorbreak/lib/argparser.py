"""
Provides a customized argument parser that is used by all xorbreak `xorbreak.units.Unit`s.
"""
from __future__ import annotations

from argparse import (
    Action,
    ArgumentError,
    ArgumentParser,
    ArgumentTypeError,
    RawDescriptionHelpFormatter,
)
from typing import Any, Sequence

import sys

from xorbreak.lib.tools import get_terminal_size


class ArgparseError(ValueError):
    """
    This custom exception type is thrown from the custom argument parser of
    `xorbreak.units.Unit` rather than terminating program execution immediately.
    The `parser` parameter is a reference to the argument parser that threw
    the underlying argument parsing exception with the given `message`.
    """
    def __init__(self, parser, message):
        self.parser = parser
        super().__init__(message)


class LineWrapRawTextHelpFormatter(RawDescriptionHelpFormatter):
    """
    The help text formatter uses the full width of the terminal.
    """

    def __init__(self, prog, indent_increment=2, max_help_position=30, width=None):
        super().__init__(prog, indent_increment, max_help_position, width=get_terminal_size(80))


class ArgumentParserWithKeywordHooks(ArgumentParser):
    """
    The argument parser can be initialized with a given set of keywords which will be parsed as if
    they had been passed as arguments on the command line. Arguments that are provided as keywords
    are no longer required.
    """

    keywords: dict[str, Any]

    def __init__(self, keywords, prog=None, description=None, add_help=True):
        super().__init__(
            prog=prog,
            description=description,
            add_help=add_help,
            formatter_class=LineWrapRawTextHelpFormatter,
        )
        if sys.version_info >= (3, 14):
            self.color = False
        self.keywords = keywords

    def _add_action(self, action: Action):
        keywords = self.keywords
        if action.dest in keywords:
            action.required = False
            if action.option_strings == [] and action.nargs is None:
                action.nargs = '?'
            atype = getattr(action, 'type', None)
            if callable(atype):
                value = keywords[action.dest]
                if value is not None and isinstance(value, str) and atype is not str:
                    keywords[action.dest] = atype(value)
        return super()._add_action(action)

    def error_commandline(self, message):
        super().error(message)

    def error(self, message):
        raise ArgparseError(self, message)

    def parse_args_with_keywords(self, args: Sequence[str], namespace=None):
        keywords = self.keywords
        self.set_defaults(**keywords)
        try:
            parsed = self.parse_args(args=list(args), namespace=namespace)
        except (ArgumentError, ArgumentTypeError, ArgparseError) as e:
            self.error(str(e))
        except Exception as e:
            self.error(F'Failed to parse arguments: {args!r}, {e}, {type(e).__name__}')
        for name in keywords:
            param = getattr(parsed, name, None)
            if param != keywords[name]:
                self.error(
                    F'parameter "{name}" duplicated with conflicting '
                    F'values {param} and {keywords[name]}'
                )
        return parsed
