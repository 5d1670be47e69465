"""
dml2graph package root.

Provides the domain metamodel (DML) layer, graph store integration, the
relational source adapters and the migration engine that copies a relational
object store into a Neo4j property graph.
"""

__all__ = ["config", "dml", "errors", "graph", "migration", "source"]
