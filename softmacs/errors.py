from typing import Any


class SoftmacsError(Exception):
    """ Base class for all Softmacs errors; `term` holds the offending term"""

    def __init__(self, message: str, term: Any = None):
        super().__init__(message)
        self.term = term


class UnboundSymbol(SoftmacsError):
    """ Raised when a symbol is looked up or assigned before it is bound"""

    @property
    def symbol(self):
        return self.term


class UnresolvedReference(SoftmacsError):
    """ Raised when a hash is neither stored locally nor supplied by the resolver"""

    @property
    def hash(self) -> str:
        return self.term


class NotCombinable(SoftmacsError):
    """ Raised when the head of a combination is not a combiner"""


class NoActivePrompt(SoftmacsError):
    """ Raised when capture, abort or invoke finds no prompt with the requested tag"""

    @property
    def tag(self):
        return self.term


class ContinuationReused(SoftmacsError):
    """ Raised when a one-shot continuation is invoked a second time"""


class ArityOrShapeError(SoftmacsError):
    """ Raised when an operand tree does not have the shape an operative needs"""


class SoftmacsTypeError(SoftmacsError):
    """ Raised when a primitive receives a value of the wrong kind"""


class FrozenEnvironment(SoftmacsTypeError):
    """ Raised when define or set! targets an environment resolved from the store"""


class NotInternable(SoftmacsError, TypeError):
    """ Raised when a term has no stable structure to hash"""


class StoreCorruption(BaseException):
    """ Two structurally different terms produced the same digest.

    Derives from BaseException so that it escapes `except Exception` blocks:
    once the hash invariant is broken no content reference can be trusted.
    """

    def __init__(self, message: str, digest: str):
        super().__init__(message)
        self.digest = digest
