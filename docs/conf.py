# Sphinx configuration for the crate-registry documentation.

import os
import sys

sys.path.insert(0, os.path.abspath("../src"))

from crate_registry import __version__  # noqa: E402

# -- Project information -----------------------------------------------------
project = "crate-registry"
copyright = "2025, Crate Registry Contributors"
author = "Crate Registry Contributors"
version = __version__
release = __version__

# -- General configuration ---------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "myst_parser",
    "sphinxcontrib.mermaid",
]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
root_doc = "index"

# Models and graph records use Google-style "Attributes:" sections
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_use_ivar = True

# usage.md renders the data-flow diagram from a ```{mermaid} fence
myst_enable_extensions = ["colon_fence"]
myst_fence_as_directive = ["mermaid"]

exclude_patterns = ["_build"]

# -- Options for HTML output -------------------------------------------------
html_theme = "sphinx_rtd_theme"
html_title = f"crate-registry {release}"

# -- Autodoc settings --------------------------------------------------------
autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "show-inheritance": True,
}
autodoc_typehints = "description"
autodoc_class_signature = "separated"

# CrateDetails and Resolve re-export dataclass fields already covered by
# their Attributes sections
suppress_warnings = ["ref.python"]
