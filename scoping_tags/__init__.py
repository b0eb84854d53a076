"""
scoping_tags - Structural tag index for source trees.

Extracts named constructs (functions, classes, interfaces, types, Fortran
program units) from TypeScript/JavaScript and Fortran sources and persists
them as a JSON index keyed by file path.
"""

__version__ = "0.1.0"
__author__ = "scoping-tags contributors"
