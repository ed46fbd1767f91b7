"""Main entry point when executing lincli as a package.

This allows running the package using python -m lincli.
"""

from lincli.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
