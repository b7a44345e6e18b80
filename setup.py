#!/usr/bin/env python3
from __future__ import annotations

import re
import os
import setuptools
import pathlib
import sys
import toml

__prefix__ = os.getenv('XORBREAK_PREFIX') or ''
__minver__ = '3.8'
__github__ = 'https://github.com/xorbreak/xorbreak/'
__gitraw__ = 'https://raw.githubusercontent.com/xorbreak/xorbreak/'
__author__ = 'The xorbreak authors'
__slogan__ = 'Frequency analysis attacks against single-byte and repeating-key XOR.'
__topics__ = [
    'Development Status :: 3 - Alpha',
    'Operating System :: OS Independent',
    'Programming Language :: Python :: 3 :: Only',
    'Topic :: Security',
    'Topic :: Security :: Cryptography',
]

_BUILD_ONLY = ('setuptools', 'wheel', 'toml')


class DeployCommand(setuptools.Command):
    description = 'Tag and push new release.'
    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    @staticmethod
    def main():
        import subprocess
        import shlex
        import xorbreak

        DEVNULL = open(os.devnull, 'wb')

        def run(cmd):
            print(F'run: {cmd}')
            return subprocess.check_call(
                shlex.split(cmd),
                stdout=DEVNULL,
                stderr=DEVNULL,
                cwd=os.getcwd(),
            )

        root = pathlib.Path(xorbreak.__file__).parent.parent
        os.chdir(root)

        try:
            run(F'git tag {xorbreak.__version__}')
            run(R'git push')
            run(R'git push --tags')
        except subprocess.CalledProcessError as E:
            print(F'error: {E!s}')
            return 1
        else:
            return 0

    def run(self):
        sys.exit(self.main())


def get_config():
    here = pathlib.Path(__file__).parent.absolute()
    sys.path.insert(0, str(here))

    import xorbreak

    with xorbreak.__unit_loader__ as ldr:
        ldr.reload()

    def get_setup_readme(filename: str | pathlib.Path | None = None):
        if filename is None:
            filename = here.joinpath('README.md')
        with open(filename, 'r', encoding='UTF8') as README:
            def complete_link(match):
                link: str = match[1]
                if any(link.lower().endswith(xt) for xt in ('jpg', 'gif', 'png', 'svg')):
                    return F'({__gitraw__}master/{link})'
                else:
                    return F'({__github__}blob/master/{link})'
            readme = README.read()
            return re.sub(R'(?<=\])\((?!\w+://)(.*?)\)', complete_link, readme)

    def get_setup_common() -> dict:
        return dict(
            version=xorbreak.__version__,
            long_description=get_setup_readme(),
            author=__author__,
            description=__slogan__,
            long_description_content_type='text/markdown',
            url=__github__,
            python_requires=F'>={__minver__}',
            classifiers=__topics__,
        )

    def normalize_name(name: str, separator: str = '-'):
        return separator.join([segment for segment in name.strip('_').split('_')])

    if __prefix__ == '!':
        console_scripts = []
    else:
        with xorbreak.__unit_loader__ as ldr:
            console_scripts = [
                F'{__prefix__}{normalize_name(name)}={path}:{name}.run'
                for name, path in ldr.units.items()
            ]

    ppcfg: dict[str, dict[str, list[str]]] = toml.load(here.joinpath('pyproject.toml'))
    requirements = [
        r for r in ppcfg['build-system']['requires']
        if not r.startswith(_BUILD_ONLY)
    ]

    config = get_setup_common()
    config['classifiers'] += [
        'Topic :: Utilities'
    ]
    config.update(
        name=xorbreak.__distribution__,
        packages=setuptools.find_packages(include=('xorbreak*',)),
        install_requires=requirements,
        extras_require={'dev': ['flake8']},
        package_data={'xorbreak': ['data/*.txt']},
        include_package_data=True,
        entry_points={'console_scripts': console_scripts},
        cmdclass={'deploy': DeployCommand},
    )

    return config


if __name__ == '__main__':
    setuptools.setup(**get_config())
