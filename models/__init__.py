"""
Persistence layer: SQLAlchemy models and the DBStorage credential store.
"""
