"""Preparation of macromolecular models for restrained refinement."""

__version__ = "0.3.0"
