"""ReliefOpt: district-level relief resource allocation backend."""

__version__ = "0.2.0"
