"""Entry point for running poolbox as a module.

This allows the package to be executed as:
    python -m poolbox

It delegates to the CLI main function.
"""

from poolbox.cli.main import main

if __name__ == "__main__":
    main()
