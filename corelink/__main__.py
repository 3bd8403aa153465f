"""Main entry point when executing corelink as a package.

This allows running the package using python -m corelink.
"""

from corelink.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
