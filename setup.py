#!/usr/bin/env python
import codecs
import os.path
import re

from setuptools import setup, find_packages

here = os.path.abspath(os.path.dirname(__file__))


def read(*parts):
    return codecs.open(os.path.join(here, *parts), 'r').read()


def find_version(*file_paths):
    version_file = read(*file_paths)
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]",
                              version_file, re.M)
    if version_match:
        return version_match.group(1)
    raise RuntimeError("Unable to find version string.")


install_requires = [line.strip() for line in open(os.path.join(here, 'requirements.txt')).readlines()
                    if line.strip() and not line.startswith('#')]

setup(
    name='iconfetcher',
    version=find_version("iconfetcher", "__init__.py"),
    description='Find the best available icon for any web-site URL, with bounded latency and a guaranteed fallback.',
    long_description=read('README.md'),
    long_description_content_type='text/markdown',
    keywords='favicon icon apple-touch-icon og:image website logo resolver',
    entry_points={"console_scripts": ["iconfetcher=iconfetcher:main"]},
    zip_safe=True,
    packages=find_packages(include=['iconfetcher', 'iconfetcher.*']),
    include_package_data=True,
    install_requires=install_requires,
    extras_require={'test': ['pytest']},
    license="Apache License 2.0",
    python_requires=">= 3.10",
    classifiers=['Intended Audience :: Developers',
                 'Topic :: Internet',
                 'Topic :: Internet :: WWW/HTTP',
                 'Topic :: Internet :: WWW/HTTP :: Site Management',
                 'Topic :: Multimedia :: Graphics',
                 'Topic :: Text Processing :: Markup :: HTML',
                 'Topic :: Utilities'
                 ],
)
