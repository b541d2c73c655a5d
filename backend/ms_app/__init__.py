"""ms_app: replicated PostgreSQL demo service"""

__version__ = "0.1.0"
