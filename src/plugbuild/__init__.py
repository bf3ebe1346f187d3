"""plugbuild: compile and link core of a plugin-driven package build."""

__version__ = "0.1.0"
