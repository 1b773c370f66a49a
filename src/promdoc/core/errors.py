"""Exception hierarchy shared by the translation layer and its adapters."""


class PromdocError(Exception):
    """Base class for all promdoc errors."""


class DecodeError(PromdocError):
    """Inbound payload could not be decompressed or deserialized."""


class QueryCompileError(PromdocError):
    """A read query could not be compiled into a filter expression."""


class UnsupportedMatcherError(QueryCompileError):
    """A label matcher carries a match type the compiler does not know.

    This indicates a protocol or version mismatch with the caller and is
    reported as a server-side failure.
    """

    def __init__(self, match_type: object) -> None:
        super().__init__(f"unsupported label matcher type: {match_type!r}")
        self.match_type = match_type


class InvalidMatcherError(QueryCompileError):
    """A regex matcher carries a pattern that does not compile."""


class StoreError(PromdocError):
    """The underlying document store failed. The driver error is the cause."""


class AuthError(PromdocError):
    """Missing or incorrect bearer token while authentication is enabled."""


class ConfigurationError(PromdocError):
    """Settings are incomplete or inconsistent."""
