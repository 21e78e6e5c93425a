"""Clone a git repository and merge its text files into a single document."""

__version__ = "0.1.0"
