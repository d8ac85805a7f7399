"""Certgate entry point."""
import sys

from certgate import main

if __name__ == '__main__':
    sys.exit(main.main())  # pragma: no cover
