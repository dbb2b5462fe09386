"""Sphinx configuration for the sdc-toolkit documentation."""

project = "sdc-toolkit"
copyright = "2026, F4PGA Authors"
author = "F4PGA Authors"

root_doc = "index"
exclude_patterns = ["_build"]

extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
]

# Pages are written in Markdown; API pages use autodoc through MyST.
source_suffix = {".md": "markdown", ".rst": "restructuredtext"}
myst_enable_extensions = ["colon_fence"]

autodoc_member_order = "bysource"
autodoc_typehints = "description"
napoleon_numpy_docstring = True
napoleon_google_docstring = False

html_theme = "sphinx_rtd_theme"
html_title = "sdc-toolkit"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "networkx": ("https://networkx.org/documentation/stable", None),
    "lark": ("https://lark-parser.readthedocs.io/en/stable", None),
}
