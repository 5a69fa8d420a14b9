"""
Colorit Catalog Engine

Named-color catalog registry, incremental search and nearest-color matching
for the Colorit catalog browser.
"""

__version__ = "1.0.0"
