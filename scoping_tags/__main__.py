"""
__main__.py - Entry point for `python -m scoping_tags`.

Delegates to the Typer CLI defined in cli.py.
"""

from scoping_tags.cli import app

if __name__ == "__main__":
    app()
