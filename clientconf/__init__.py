"""clientconf: typed configuration resolution for infrastructure clients.

Schemas are declared as plain data, resolved once per process against
ordered key/value layers, and exposed as immutable, typed values.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
