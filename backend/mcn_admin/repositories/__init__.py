"""Data-access helpers built on SQLAlchemy Core and ORM queries."""
