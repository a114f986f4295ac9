# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
import datetime
import importlib.metadata as metadata

sys.path.insert(0, os.path.abspath('../..'))

# -- Project information -----------------------------------------------------

project = 'fitmh'
current_year = datetime.date.today().year
copyright = f'2022-{current_year}, CentraleSupelec'
author = 'Emmanuel Vazquez'
release = metadata.version('fitmh')
language = "en"

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.napoleon",
    "numpydoc",
    "sphinx.ext.viewcode",
    "sphinx.ext.mathjax",
]

templates_path = ['_templates']
source_suffix = [".rst", ".md"]
exclude_patterns = ["images"]

# -- Extensions -------------------------------------------------------------

autosummary_generate = True
numpydoc_class_members_toctree = False

# -- Options for HTML output -------------------------------------------------

html_theme = 'alabaster'
html_static_path = ["_static"]
html_theme_options = {
    "description": "adaptive Metropolis-Hastings for model fitting",
    "github_banner": False,
    "github_button": False,
}
