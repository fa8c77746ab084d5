"""Team assessment server: judge ratings, team PINs and group-scoped results"""

__version__ = "1.0.0"
