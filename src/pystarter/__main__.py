"""
pystarter package entry point.

Allows running pystarter as a module:
    python -m pystarter
"""

from pystarter.cli import main

if __name__ == "__main__":
    main()
