#!/usr/bin/env python
from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name='ldapscript',
    version='1.0.0',
    description='A small scripting facade over python-ldap: add, read, search and modify entries with plain Python values',
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=['ldap', 'scripting'],
    author="Caltech IMSS ADS",
    author_email="imss-ads-staff@caltech.edu",
    packages=find_packages(exclude=['bin', 'ldapscript.tests']),
    include_package_data=True,
    python_requires='>=3.10',
    install_requires=[
        'ldap_filter',
        'python-ldap',
        'case-insensitive-dictionary',
    ],
    extras_require={
        'django': [
            'django',
        ],
        'test': [
            'django',
            'pytest',
            'python-ldap-faker',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3"
    ],
)
