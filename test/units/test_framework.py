#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import io

from unittest import mock

from xorbreak.lib.argparser import ArgparseError
from xorbreak.lib.types import Param, buf
from xorbreak.units import Arg, Entry, Unit

from . import TestUnitBase


class prefixer(Unit):
    """
    Prepends the given data to the input.
    """
    def __init__(
        self,
        prefix: Param[buf, Arg.Binary(help='This data will be prepended to the input.')],
        count: Param[int, Arg.Number('-n', help='Repeat the prefix N times, default is {default}.')] = 1,
    ):
        super().__init__(prefix=prefix, count=count)

    def process(self, data):
        return self.args.prefix * self.args.count + data


class TestUnitFramework(TestUnitBase):

    def test_entry_marker(self):
        self.assertTrue(issubclass(prefixer, Entry))
        self.assertFalse(issubclass(Unit, Entry))

    def test_argument_inference(self):
        spec = prefixer._argument_specification
        self.assertTrue(spec['prefix'].positional)
        self.assertFalse(spec['count'].positional)
        self.assertEqual(spec['count'].destination, 'count')
        self.assertIn('default is 1', spec['count'].kwargs['help'])

    def test_assemble(self):
        unit = prefixer.assemble('s:AB', '-n', '0x2').log_detach()
        self.assertEqual(unit(B'C'), B'ABABC')
        unit = prefixer.assemble(prefix=B'X').log_detach()
        self.assertEqual(unit(B'Y'), B'XY')

    def test_conflicting_arguments(self):
        with self.assertRaises(ArgparseError):
            prefixer.assemble('s:AB', prefix=B'CD')

    def test_missing_argument(self):
        with self.assertRaises(ArgparseError):
            prefixer.assemble()

    def test_reversibility(self):
        self.assertFalse(prefixer.is_reversible)
        self.assertTrue(self.ldu('hex').is_reversible)

    def test_unit_names(self):
        self.assertEqual(prefixer.name, 'prefixer')
        self.assertEqual(self.ldu('autoxor').name, 'autoxor')

    def test_output_list(self):
        self.assertEqual(B'A' | prefixer(B'B') | [str], ['BA'])

    def test_output_stream(self):
        output = io.BytesIO()
        B'A' | prefixer(B'B') | output
        self.assertEqual(output.getvalue(), B'BA')

    def test_class_level_negation(self):
        from xorbreak import hex
        self.assertEqual(B'AB' | -hex | str, '4142')

    def test_pipeline_with_reversed_unit(self):
        from xorbreak import hex, xor
        self.assertEqual(B'HELLO WORLD' | xor(B'KEY') | -hex | str, '030015070a791c0a0b0701')

    def test_command_line(self):
        stdout = mock.MagicMock()
        stdout.buffer = io.BytesIO()
        with mock.patch('sys.stdout', stdout):
            self.ldu('hex').run(['-R'], stream=io.BytesIO(B'\x01\x02'))
        self.assertEqual(stdout.buffer.getvalue(), B'0102')

    def test_command_line_errors_are_logged(self):
        stdout = mock.MagicMock()
        stdout.buffer = io.BytesIO()
        hex = self.ldu('hex').__class__
        with mock.patch('sys.stdout', stdout), mock.patch.object(hex, 'log_warn') as log_warn:
            with mock.patch('xorbreak.units.environment.verbosity.value', None):
                hex.run([], stream=io.BytesIO(B'XYZ'))
        self.assertEqual(stdout.buffer.getvalue(), B'')
        log_warn.assert_called_once()
