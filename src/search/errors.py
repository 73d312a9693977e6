"""
Search engine errors.

Only backend failures are errors. Malformed client input is degraded
by the request parser and the filter compiler and never raises.
"""


class SearchBackendError(Exception):
    """A collaborator (schema registry, executor) failed. Fatal for the request."""
    pass


class SchemaLookupError(SearchBackendError):
    """The category schema could not be read."""
    pass


class SearchExecutionError(SearchBackendError):
    """The combined results + facets execution failed."""
    pass
