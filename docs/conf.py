# Sphinx configuration for the chip8core API reference.

import os
import sys

sys.path.insert(0, os.path.abspath(".."))

project = "chip8core"
release = "0.1.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx_autodoc_typehints",
    "myst_parser",
]

exclude_patterns = ["_build"]

# The core documents without the front-end back-ends installed
autodoc_mock_imports = ["cv2", "PIL"]

html_theme = "furo"
html_title = "chip8core"
