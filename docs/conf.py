"""Sphinx configuration for Person Registry API documentation."""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.abspath(".."))

project = "Person Registry API"
current_year = datetime.now().year
copyright = f"{current_year}, Person Registry"
author = "Person Registry Team"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
]

templates_path = ["_templates"]
exclude_patterns: list[str] = []

html_theme = "alabaster"

html_static_path = ["_static"]
