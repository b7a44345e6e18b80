#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import os
import tempfile

from unittest import mock

from xorbreak.lib import corpus
from xorbreak.lib.exceptions import CorpusUnavailable
from xorbreak.lib.frequency import compute_frequencies

from .. import TestBase


BOOK = '\n'.join((
    'The Project Gutenberg eBook of a test',
    '',
    '*** START OF THE PROJECT GUTENBERG EBOOK A TEST ***',
    '',
    'It was the best of times, it was the worst of times.',
    '',
    '*** END OF THE PROJECT GUTENBERG EBOOK A TEST ***',
    'License text.',
))


class FakeFetcher:

    def __init__(self, text=BOOK):
        self.text = text
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        return self.text


class TestGutenberg(TestBase):

    def test_extract_body(self):
        self.assertEqual(corpus.gutenberg_body(BOOK), 'It was the best of times, it was the worst of times.')

    def test_this_marker(self):
        book = BOOK.replace('OF THE PROJECT', 'OF THIS PROJECT')
        self.assertEqual(corpus.gutenberg_body(book), 'It was the best of times, it was the worst of times.')

    def test_missing_markers(self):
        with self.assertRaises(CorpusUnavailable):
            corpus.gutenberg_body('no markers in this text')
        with self.assertRaises(CorpusUnavailable):
            corpus.gutenberg_body(BOOK.split('*** END')[0])

    def test_empty_body(self):
        with self.assertRaises(CorpusUnavailable):
            corpus.gutenberg_body(
                '*** START OF THE PROJECT GUTENBERG EBOOK X ***\n\n*** END OF THE PROJECT GUTENBERG EBOOK X ***')


class TestCorpusCache(TestBase):

    def test_memory_cache_fetches_once(self):
        fetch = FakeFetcher()
        cache = corpus.MemoryCache()
        self.assertEqual(cache.get_or_fetch('https://example.org/a', fetch), BOOK)
        self.assertEqual(cache.get_or_fetch('https://example.org/a', fetch), BOOK)
        self.assertEqual(fetch.calls, ['https://example.org/a'])

    def test_file_cache(self):
        fetch = FakeFetcher()
        with tempfile.TemporaryDirectory() as root:
            cache = corpus.FileCache(root)
            self.assertIsNone(cache.get('https://example.org/b'))
            cache.get_or_fetch('https://example.org/b', fetch)
            path = cache.path('https://example.org/b')
            self.assertTrue(path.exists())
            self.assertTrue(path.name.startswith('xorbreak-corpus-'))
            self.assertNotEqual(path, cache.path('https://example.org/c'))
            fresh = corpus.FileCache(root)
            self.assertEqual(fresh.get_or_fetch('https://example.org/b', fetch), BOOK)
            self.assertEqual(len(fetch.calls), 1)

    def test_file_cache_default_root(self):
        with tempfile.TemporaryDirectory() as root:
            with mock.patch.object(corpus.environment.cache_dir, 'value', root):
                self.assertEqual(os.fspath(corpus.FileCache().root), root)

    def test_unwritable_cache(self):
        with tempfile.NamedTemporaryFile() as blocker:
            cache = corpus.FileCache(os.path.join(blocker.name, 'sub'))
            with self.assertRaises(CorpusUnavailable):
                cache.put('https://example.org/d', 'text')


class TestCorpusProvider(TestBase):

    def test_frequencies(self):
        provider = corpus.CorpusProvider(corpus.MemoryCache(), FakeFetcher())
        self.assertEqual(
            provider.frequencies('https://example.org/book'),
            compute_frequencies('It was the best of times, it was the worst of times.'))

    def test_fetch_errors_propagate(self):
        def fetch(url):
            raise CorpusUnavailable('offline')
        provider = corpus.CorpusProvider(corpus.MemoryCache(), fetch)
        with self.assertRaises(CorpusUnavailable):
            provider.text('https://example.org/book')

    def test_reference_frequencies(self):
        with mock.patch.object(corpus.environment.corpus_url, 'value', None):
            self.assertEqual(corpus.reference_frequencies(), compute_frequencies(corpus.bundled_text()))

    def test_reference_frequencies_from_environment(self):
        url = 'https://example.org/environment'
        cache = corpus.MemoryCache()
        cache.put(url, BOOK)
        with mock.patch.object(corpus.environment.corpus_url, 'value', url):
            self.assertEqual(
                corpus.reference_frequencies(cache=cache),
                compute_frequencies('It was the best of times, it was the worst of times.'))

    def test_bundled_text(self):
        text = corpus.bundled_text()
        self.assertGreater(len(text), 5000)
        self.assertIn('Rabbit', text)


class TestDownload(TestBase):

    def test_retries_and_fails(self):
        import urllib.error
        with mock.patch('urllib.request.urlopen', side_effect=urllib.error.URLError('down')) as urlopen:
            with mock.patch('time.sleep'):
                with self.assertRaises(CorpusUnavailable):
                    corpus.download('https://example.org/x', retries=2)
        self.assertEqual(urlopen.call_count, 3)

    def test_success(self):
        response = mock.MagicMock()
        response.__enter__.return_value.read.return_value = 'Café'.encode('utf8')
        with mock.patch('urllib.request.urlopen', return_value=response):
            self.assertEqual(corpus.download('https://example.org/y'), 'Café')

    def test_empty_body(self):
        response = mock.MagicMock()
        response.__enter__.return_value.read.return_value = B''
        with mock.patch('urllib.request.urlopen', return_value=response):
            with self.assertRaises(CorpusUnavailable):
                corpus.download('https://example.org/z')

    def test_read_errors_are_retried(self):
        import http.client
        broken = mock.MagicMock()
        broken.__enter__.return_value.read.side_effect = http.client.IncompleteRead(B'partial')
        intact = mock.MagicMock()
        intact.__enter__.return_value.read.return_value = B'text'
        with mock.patch('urllib.request.urlopen', side_effect=[broken, intact]) as urlopen:
            with mock.patch('time.sleep'):
                self.assertEqual(corpus.download('https://example.org/r'), 'text')
        self.assertEqual(urlopen.call_count, 2)

    def test_connection_reset_is_wrapped(self):
        response = mock.MagicMock()
        response.__enter__.return_value.read.side_effect = ConnectionResetError('reset')
        with mock.patch('urllib.request.urlopen', return_value=response):
            with mock.patch('time.sleep'):
                with self.assertRaises(CorpusUnavailable):
                    corpus.download('https://example.org/c', retries=1)

    def test_client_error_is_not_retried(self):
        import urllib.error
        error = urllib.error.HTTPError('https://example.org/404', 404, 'Not Found', {}, None)
        with mock.patch('urllib.request.urlopen', side_effect=error) as urlopen:
            with mock.patch('time.sleep'):
                with self.assertRaises(CorpusUnavailable):
                    corpus.download('https://example.org/404')
        self.assertEqual(urlopen.call_count, 1)

    def test_server_error_is_retried(self):
        import urllib.error
        error = urllib.error.HTTPError('https://example.org/503', 503, 'Unavailable', {}, None)
        with mock.patch('urllib.request.urlopen', side_effect=error) as urlopen:
            with mock.patch('time.sleep'):
                with self.assertRaises(CorpusUnavailable):
                    corpus.download('https://example.org/503', retries=2)
        self.assertEqual(urlopen.call_count, 3)

    def test_invalid_utf8(self):
        response = mock.MagicMock()
        response.__enter__.return_value.read.return_value = B'\xFF\xFE\xFD'
        with mock.patch('urllib.request.urlopen', return_value=response):
            with self.assertRaises(CorpusUnavailable):
                corpus.download('https://example.org/u')
