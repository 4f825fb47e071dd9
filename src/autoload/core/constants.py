"""
Introspection limits and marker constants shared by the reflection and derivation paths.

Notes:
    - FIELD_CEILING bounds the number of slots a schema may declare; both paths
      reject larger schemas with SchemaTooLarge at definition time.
    - FILLER_TAG is the textual form of an index-tagged filler used by the derivation
      path; it must not contain characters that appear in repr marker pairs.
"""

from __future__ import annotations

__all__ = [
    "FIELD_CEILING",
    "FILLER_TAG",
]

# Maximum number of top-level slots a schema may declare.
FIELD_CEILING: int = 64

# repr() of the i-th filler; formatted with the filler index.
FILLER_TAG: str = "<autoload#{index}>"
