#!/usr/bin/env python
# -*- coding: utf-8 -*-


import setuptools

with open('README.rst') as readme_file:
    readme = readme_file.read()


requirements = [
]

extras_require = {
    "dev": [
        "bumpversion>=0.5.3",
        "wheel>=0.23.0",
        "flake8>=2.4.1",
        "tox>=2.1.1",
        "coverage>=4.0",
        "twine>=1.11",
        "pytest>=5.3",
        "pytest-xdist>=3.6",
        "vulture>=2.1",
    ],
    "test": [
        "pytest>=5.3",
        "pytest-xdist>=3.6",
    ],
}

setuptools.setup(
    name = 'fifostreams',
    version = '1.0.0',
    description = "fifostreams - stream data to and from external programs through named pipes",
    long_description = readme,
    long_description_content_type="text/x-rst",
    author = "Mark Diekhans",
    author_email = 'markd@ucsc.edu',
    packages = [
        'fifostreams',
    ],
    package_dir = {'': 'lib'},
    include_package_data = True,
    install_requires = requirements,
    extras_require = extras_require,
    license = "MIT",
    zip_safe = True,
    keywords = ['Unix', 'process', 'pipe', 'fifo', 'mkfifo'],
    classifiers = [
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Operating System :: POSIX',
        'Operating System :: MacOS :: MacOS X',
        'Topic :: Software Development :: Libraries :: Python Modules'
    ],
    python_requires='>=3.10',
)
