# Core type aliases for the Softmacs data model.
# Atoms are plain Python values (int, float, str, bool) plus Symbol; lists are
# built from immutable Pair cells terminated by Nil.
#
# Naming guidance:
# - Term:     anything the evaluator consumes or produces (code and data alike).
# - Hash:     hex SHA-256 digest naming a term in the content-addressed store.
# - Resolver: the external capability that supplies a term for a hash.

from typing import Any, Callable, Optional

# Runtime value alias
Term = Any
# Content address of a term (64 lowercase hex characters)
Hash = str

# External resolution capability: returns the term or None when not found
ResolverFn = Callable[[Hash], Optional[Term]]
