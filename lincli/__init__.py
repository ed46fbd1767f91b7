"""lincli: resilient GraphQL data access for the Linear command line."""

__version__ = "0.1.0"
