"""asmlink - assemble and link a directory of assembly sources."""

__version__ = "0.1.0"
