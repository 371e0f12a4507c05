"""Columnar relations, a join engine, MurmurHash64A, and bit-array / wavelet-tree indexes."""

__version__ = "0.1.0"