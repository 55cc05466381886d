"""gman — audit drift between a CodeSource tree and a database."""

__version__ = "0.1.0"
