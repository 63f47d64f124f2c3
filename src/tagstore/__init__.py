"""tagstore — tag/article relation storage for forum applications."""

__version__ = "0.2.0"
