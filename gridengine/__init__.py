"""gridengine - in-memory tabular data engine with reversible edits.

The engine keeps a master row collection plus a materialized current view,
interprets a small command language (FILTER / SORT / SELECT / STATS / TRIM /
EXPORT) and records every mutation as a reversible action.
"""

__version__ = "0.4.0"
