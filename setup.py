#!/usr/bin/env python

from setuptools import setup, find_packages

import radclient

setup(name='radclient',
      version=radclient.__version__,
      license='BSD',
      description='RADIUS client transport and packet security',
      long_description=open('README.rst').read(),
      classifiers=[
          'Development Status :: 5 - Production/Stable',
          'Intended Audience :: Developers',
          'License :: OSI Approved :: BSD License',
          'Programming Language :: Python :: 3.12',
          'Programming Language :: Python :: 3.13',
          'Topic :: Software Development :: Libraries :: Python Modules',
          'Topic :: System :: Systems Administration :: Authentication/Directory',
      ],
      packages=find_packages(),
      keywords=['radius', 'authentication', 'accounting'],
      python_requires='>=3.8',
      install_requires=['netaddr>=0.8'],
      extras_require={'test': ['pytest']},
      zip_safe=True,
      include_package_data=True,
      )
