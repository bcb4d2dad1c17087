"""Durable, duplicate-free HTTP uploader for recorded output files."""

__version__ = "0.1.0"
