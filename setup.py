import codecs
import os
import re

from setuptools import find_packages
from setuptools import setup


def read_file(filename, encoding='utf8'):
    """Read unicode from given file."""
    with codecs.open(filename, encoding=encoding) as fd:
        return fd.read()


here = os.path.abspath(os.path.dirname(__file__))

# read version number (and other metadata) from package init
init_fn = os.path.join(here, 'src', 'certgate', '__init__.py')
meta = dict(re.findall(r"""__([a-z]+)__ = '([^']+)""", read_file(init_fn)))

version = meta['version']

install_requires = [
    'ConfigArgParse>=1.5.3',
    'cryptography>=43.0.0',
    'docker>=7.0.0',
]

test_extras = [
    'coverage',
    'pytest',
    'pytest-cov',
]


setup(
    name='certgate',
    version=version,
    description='Startup gate and certificate provisioning for an ACME companion container',
    license='Apache License 2.0',
    python_requires='>=3.9',
    classifiers=[
        'Environment :: Console',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Topic :: Security',
        'Topic :: System :: Systems Administration',
    ],

    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    package_data={
        'certgate': ['dhparam/*.pem'],
        'certgate.tests': ['testdata/*'],
    },
    include_package_data=True,

    install_requires=install_requires,
    extras_require={
        'test': test_extras,
    },

    entry_points={
        'console_scripts': [
            'certgate = certgate.main:main',
        ],
    },
)
