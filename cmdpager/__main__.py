"""Module entrypoint for ``python -m cmdpager``.

Argument parsing and runtime setup happen in ``cmdpager.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
