"""archnorm: normalization of semi-structured archival records.

Raw records arrive as loosely-typed trees converted from archival XML. The
core turns them into immutable, multilingual, strongly-typed item values.
"""

__version__ = "0.3.0"
