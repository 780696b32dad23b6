"""jsdepgraph: structural relation graphs extracted from JavaScript source."""

__version__ = "0.1.0"
