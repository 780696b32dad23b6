"""Entry point for ``python main.py``; runs the API server unless told otherwise.

``python main.py`` is the same as ``jsdepgraph serve``; any arguments
are passed to the command line interface instead.
"""

import sys

from jsdepgraph.cli import main

if __name__ == "__main__":
    main(sys.argv[1:] or ["serve"])
