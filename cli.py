#!/usr/bin/env python3
"""Console-script entry point for skli.

``main.py`` and ``config.py`` are top-level modules, so the directory holding
them is put on the import path before ``main`` is loaded.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def main():
    from main import main as run_main

    sys.exit(run_main(sys.argv[1:]))


if __name__ == "__main__":
    main()
