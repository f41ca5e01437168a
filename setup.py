#!/usr/bin/env python

from setuptools import setup, find_packages

PROJECT = 'Bosun'

try:
    long_description = open('README.rst', 'rt').read()
except IOError:
    long_description = ''

setup(
    name='bosun',
    version='0.4.0',
    description='Plugin and sensor mapping engine for marine dashboards',
    long_description=long_description,

    license='open source (see LICENSE)',
    classifiers=['Programming Language :: Python',
                 'Programming Language :: Python :: 3',
                 'Environment :: Console',
                 ],
    platforms=['Any'],
    scripts=[],
    provides=[],
    python_requires='>=3.8',
    install_requires=['click',
                      'psutil',
                      'aiohttp>=3.9',
                      'yarl',
                      'dateparser',
                      'tabulate',
                      'sqlalchemy>=1.4'],
    extras_require={
        'tests': ['nose2',
                  'pytest'],
    },
    test_suite='tests',
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,

    entry_points={
        'console_scripts': [
            'bosun = bosun.cli:main',
            'bosund = bosun.daemon:main',
        ]
    },
    zip_safe=False,
)
