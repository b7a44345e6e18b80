#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import contextlib
import pathlib
import sys

from unittest import mock

from xorbreak.lib import resources

from .. import TestBase


class TestResources(TestBase):

    def test_bundled_text_is_found(self):
        path = resources.datapath('english.txt')
        self.assertIn('Rabbit-Hole', path.read_text(encoding='utf8'))

    def test_fallback_without_resource_files(self):
        root = pathlib.Path('/opt/xorbreak/data')
        legacy = mock.Mock(return_value=contextlib.nullcontext(root))
        with mock.patch.object(sys, 'version_info', (3, 8, 0)), \
                mock.patch.object(resources.resources, 'path', legacy):
            path = resources.datapath('english.txt')
        legacy.assert_called_once_with('xorbreak', 'data')
        self.assertEqual(path, root / 'english.txt')
