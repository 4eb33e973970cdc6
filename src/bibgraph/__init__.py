"""bibgraph — in-memory graph algorithms for citation and collaboration graphs."""

__version__ = "0.1.0"
