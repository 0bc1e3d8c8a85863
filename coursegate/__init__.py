"""coursegate - Course progress and lesson release engine for sheet-published courses."""

__version__ = "0.1.0"
