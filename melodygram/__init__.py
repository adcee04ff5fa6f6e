"""melodygram: trigram melody generation over a chord grid."""

__version__ = "0.1.0"
