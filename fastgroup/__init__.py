"""FastGroup - User/Group membership service built on the Unit of Work pattern."""

__version__ = "0.1"
