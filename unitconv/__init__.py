"""Unit and currency conversion tool."""

__version__ = "0.1.0"
