"""tootle - Play note sequences typed on the command line."""

__version__ = "0.1.0"
