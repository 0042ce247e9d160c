"""Package entry point for ``python -m speedr``.

WHY: Users run the reader as ``python -m speedr book.txt``. Python's
``-m`` flag looks for ``__main__.py`` inside the package and executes it.

HOW: Delegates to the CLI's main() function.
"""

from speedr.cli import main

if __name__ == "__main__":
    main()
