"""scaffoldcli - create new projects by copying registered templates.

Keeps a registry of project templates, each either a local directory or a
remote repository cached by commit hash, and copies a fresh instance of one
into a target directory. Remote templates are refreshed automatically when
their HEAD commit has moved.

Package entry point. Exports the version string only; all functional
modules are imported lazily by main.py to keep startup fast.
"""

__version__ = "0.1.0"
