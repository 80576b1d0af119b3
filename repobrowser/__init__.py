"""
Repository Browser — aggregated view of OSGi update sites with synthesized
p2 repository metadata.

Subpackages:
    engine  — errors, configuration, request context, logging, translations
    fs      — virtual filesystem aggregation
    p2      — software units and p2 document generators
    db      — update-site document store
"""

__version__ = "2.0.0"
__all__ = ["engine", "fs", "p2", "db"]
