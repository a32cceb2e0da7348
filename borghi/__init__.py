"""Borghi: offline capture-and-sync core for the village discovery app."""

__version__ = "0.1.0"
