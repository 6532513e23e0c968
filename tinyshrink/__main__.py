"""Main entry point when executing tinyshrink as a package.

This allows running the package using python -m tinyshrink.
"""

from tinyshrink.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
