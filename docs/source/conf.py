import os
import sys

sys.path.insert(0, os.path.abspath("../.."))

from guesthouse import __version__  # noqa: E402

project = "Roomie Guesthouse"
copyright = "2025, Roomie"
author = "Roomie"
release = __version__

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
]

autodoc_member_order = "bysource"
autodoc_mock_imports = ["psycopg2"]

templates_path = ["_templates"]
exclude_patterns: list[str] = []

html_theme = "sphinx_rtd_theme"
