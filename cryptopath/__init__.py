"""
CryptoPath - wallet explorer API over a Neo4j transaction graph.
"""

__version__ = "0.3.0"
