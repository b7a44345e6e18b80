"""
Units that attack XOR encryption by comparing character frequencies with a reference corpus.
The corpus is the English text that ships with xorbreak unless another one is selected, either
with the command line options of these units or with the `XORBREAK_CORPUS_URL` environment
variable.
"""
from __future__ import annotations

import contextlib

from xorbreak.lib.corpus import FileCache, reference_frequencies
from xorbreak.lib.environment import environment
from xorbreak.lib.exceptions import CorpusUnavailable
from xorbreak.lib.frequency import FrequencyVector, compute_frequencies
from xorbreak.lib.types import Param
from xorbreak.units import Arg, Unit


def keysize_range(bounds: slice) -> range:
    """
    Convert the key size bounds given on the command line to a range; missing bounds default to
    the range from 2 to 40, inclusive.
    """
    start = 2 if bounds.start is None else bounds.start
    stop = 41 if bounds.stop is None else bounds.stop
    if start < 1:
        raise ValueError(F'key sizes must be positive; the given lower bound is {start}')
    return range(start, stop, bounds.step or 1)


class CorpusUnit(Unit, abstract=True):
    """
    The base class for units that score candidate plaintexts against a reference corpus.
    """

    def __init__(
        self,
        corpus: Param[str, Arg.String('-c', '--corpus', metavar='PATH',
            help='Read the reference text from the given file.')] = None,
        url: Param[str, Arg.String('-u', '--url', metavar='URL',
            help='Download a Project Gutenberg book to use as the reference text; it is cached locally.')] = None,
        jobs: Param[int, Arg.Number('-j', '--jobs',
            help='Distribute the search over N worker processes.')] = None,
        **keywords
    ):
        super().__init__(corpus=corpus, url=url, jobs=jobs, **keywords)

    def _corpus(self) -> FrequencyVector:
        path = self.args.corpus
        if path is not None:
            self.log_info('reading reference text from', path)
            try:
                with open(path, 'r', encoding='utf8') as stream:
                    return compute_frequencies(stream.read())
            except (OSError, UnicodeDecodeError) as E:
                raise CorpusUnavailable(F'unable to read reference text from {path}: {E!s}') from E
        if self.args.url is not None:
            return reference_frequencies(self.args.url, FileCache())
        return reference_frequencies()

    def _executor(self):
        jobs = self.args.jobs
        if jobs is None:
            jobs = environment.jobs.value
        if jobs and jobs > 1:
            from concurrent.futures import ProcessPoolExecutor
            self.log_debug(F'using {jobs} worker processes')
            return ProcessPoolExecutor(jobs)
        return contextlib.nullcontext()
