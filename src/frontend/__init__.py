"""Textual config panel for telerelay."""
