"""Mirror an HTTP-exposed Maven repository tree to local disk."""

__version__ = "0.1.0"
