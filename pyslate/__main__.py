"""Entry point for the Pyslate CLI.

Allows running the package directly with ``python -m pyslate``.
"""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
