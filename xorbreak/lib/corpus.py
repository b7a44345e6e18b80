"""
Acquisition of the reference corpus. The analysis core only ever sees the frequency vector of a
corpus; this module produces it from a text that is either shipped with the package or downloaded
from Project Gutenberg. Downloads go through a `xorbreak.lib.corpus.CorpusCache`, which is passed
in explicitly by the caller.
"""
from __future__ import annotations

import abc
import functools
import hashlib
import http.client
import pathlib
import re
import tempfile
import time
import urllib.error
import urllib.request

from typing import Callable, Optional

from xorbreak.lib.environment import environment, logger
from xorbreak.lib.exceptions import CorpusUnavailable
from xorbreak.lib.frequency import FrequencyVector, compute_frequencies

GUTENBERG_CORPUS_URL = 'https://www.gutenberg.org/files/11/11-0.txt'

_GUTENBERG_START = re.compile(r'^\*\*\*\s*START OF (?:THE|THIS) PROJECT GUTENBERG EBOOK.*?$', re.MULTILINE)
_GUTENBERG_END = re.compile(r'^\*\*\*\s*END OF (?:THE|THIS) PROJECT GUTENBERG EBOOK', re.MULTILINE)

_log = logger(__name__)

Fetcher = Callable[[str], str]


class CorpusCache(abc.ABC):
    """
    A get-or-fetch-and-store cache for corpus texts, keyed by URL.
    """

    @abc.abstractmethod
    def get(self, url: str) -> Optional[str]:
        """
        Return the cached text for the given URL, or `None` if it is not cached.
        """

    @abc.abstractmethod
    def put(self, url: str, text: str) -> None:
        """
        Store the text for the given URL.
        """

    def get_or_fetch(self, url: str, fetch: Fetcher) -> str:
        text = self.get(url)
        if text is not None:
            _log.info(F'read text of {url} from cache')
            return text
        text = fetch(url)
        self.put(url, text)
        return text


class MemoryCache(CorpusCache):

    def __init__(self):
        self._texts: dict[str, str] = {}

    def get(self, url):
        return self._texts.get(url)

    def put(self, url, text):
        self._texts[url] = text


class FileCache(CorpusCache):
    """
    Stores each corpus in its own file below a root directory; the file name contains the SHA-256
    hash of the URL. The default root is the directory given by the `XORBREAK_CACHE` environment
    variable, or the system temporary directory.
    """

    def __init__(self, root: Optional[str | pathlib.Path] = None):
        if root is None:
            root = environment.cache_dir.value or tempfile.gettempdir()
        self.root = pathlib.Path(root)

    def path(self, url: str) -> pathlib.Path:
        digest = hashlib.sha256(url.encode('utf8')).hexdigest()
        return self.root / F'xorbreak-corpus-{digest[:16]}.txt'

    def get(self, url):
        try:
            return self.path(url).read_text(encoding='utf8')
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as E:
            raise CorpusUnavailable(F'unable to read cache file for {url}: {E!s}') from E

    def put(self, url, text):
        path = self.path(url)
        _log.info(F'write text from {url} to cache file {path}')
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding='utf8')
        except OSError as E:
            raise CorpusUnavailable(F'unable to write cache file {path}: {E!s}') from E


def download(url: str, timeout: float = 30, retries: int = 3, wait: float = 0.5) -> str:
    """
    Download the given URL and decode the body as UTF-8. Connection errors and server errors are
    retried with an exponential backoff; `xorbreak.lib.exceptions.CorpusUnavailable` is raised
    when every attempt failed, the server rejects the request, or the body is empty or not UTF-8.
    """
    error = None
    for attempt in range(retries + 1):
        if attempt:
            time.sleep(wait)
            wait *= 2
        try:
            with urllib.request.urlopen(url, timeout=timeout) as response:
                body: bytes = response.read()
        except urllib.error.HTTPError as E:
            if 400 <= E.code < 500:
                raise CorpusUnavailable(F'the request for {url} was rejected: {E!s}') from E
            _log.warning(F'attempt {attempt + 1} to download {url} failed: {E!s}')
            error = E
            continue
        except (http.client.HTTPException, OSError) as E:
            _log.warning(F'attempt {attempt + 1} to download {url} failed: {E!s}')
            error = E
            continue
        if not body:
            raise CorpusUnavailable(F'the corpus at {url} is empty')
        try:
            return body.decode('utf8')
        except UnicodeDecodeError as E:
            raise CorpusUnavailable(F'the corpus at {url} is not valid UTF-8') from E
    raise CorpusUnavailable(F'unable to download {url} after {retries + 1} attempts: {error!s}')


def gutenberg_body(text: str) -> str:
    """
    Extract the text of a Project Gutenberg book, starting on the line after the start marker and
    ending before the end marker.
    """
    start = _GUTENBERG_START.search(text)
    if start is None:
        raise CorpusUnavailable('Gutenberg start marker not found')
    end = _GUTENBERG_END.search(text, start.end())
    if end is None:
        raise CorpusUnavailable('Gutenberg end marker not found')
    body = text[start.end():end.start()].strip()
    if not body:
        raise CorpusUnavailable('Gutenberg text is empty')
    _log.debug(F'extracted {len(body)} characters of text between offsets {start.end()} and {end.start()}')
    return body


class CorpusProvider:
    """
    Resolves corpus texts from URLs through a cache. The fetch function can be replaced, which is
    used for testing.
    """

    def __init__(self, cache: Optional[CorpusCache] = None, fetch: Fetcher = download):
        self.cache = FileCache() if cache is None else cache
        self.fetch = fetch

    def text(self, url: str = GUTENBERG_CORPUS_URL) -> str:
        _log.debug(F'using {url} as reference corpus')
        return gutenberg_body(self.cache.get_or_fetch(url, self.fetch))

    def frequencies(self, url: str = GUTENBERG_CORPUS_URL) -> FrequencyVector:
        return compute_frequencies(self.text(url))


def bundled_text() -> str:
    """
    The English reference text that is shipped with the package.
    """
    from xorbreak.lib.resources import datapath
    return datapath('english.txt').read_text(encoding='utf8')


@functools.lru_cache(maxsize=1)
def bundled_frequencies() -> FrequencyVector:
    return compute_frequencies(bundled_text())


def reference_frequencies(url: Optional[str] = None, cache: Optional[CorpusCache] = None) -> FrequencyVector:
    """
    Return the frequency vector of the corpus at the given URL. When no URL is given, the value of
    the `XORBREAK_CORPUS_URL` environment variable is used; if that is not set either, the result
    is computed from the bundled English text.
    """
    url = url or environment.corpus_url.value
    if not url:
        return bundled_frequencies()
    return CorpusProvider(cache).frequencies(url)
