"""Job application tracker with a command line and an urwid table."""

__version__ = "0.1.0"
