"""Parsers and helpers for AC-3, AV1, G.711 and H.264 bitstreams."""

__version__ = "0.1.0"