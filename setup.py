#!/usr/bin/env python
from setuptools import setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("VERSION", "r", encoding="utf-8") as fh:
    version = fh.read().strip()

setup(name='fitmh',
      version=version,
      author='Emmanuel Vazquez',
      author_email='emmanuel.vazquez@centralesupelec.fr',
      description='fitmh: adaptive Metropolis-Hastings for fitting models with named parameters',
      long_description=long_description,
      long_description_content_type="text/markdown",
      classifiers=[
          "Programming Language :: Python :: 3",
          "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
          "Operating System :: OS Independent",
      ],
      packages=['fitmh', 'fitmh.misc', 'fitmh.mcmc'],
      license='GPLv3',
      install_requires=[
             "numpy",
             "scipy>=1.10.0",
             "matplotlib"
         ],
      extras_require={
          "test": ["pytest"],
          "docs": ["sphinx", "numpydoc"],
      },
      python_requires=">=3.8",
      )
