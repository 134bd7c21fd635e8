"""Reference import and merge engine.

Parses bibliographies exported by other reference managers and folds
them into a local record store without creating duplicates.
"""

__version__ = "1.0.0"
