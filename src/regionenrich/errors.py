"""Exception types raised by the region enrichment pipeline."""


class EnrichmentError(Exception):
    """Base class for all pipeline errors."""


class IntervalParseError(EnrichmentError, ValueError):
    """Malformed interval input, e.g. non-numeric coordinates or a bad column count."""


class ConfigurationError(EnrichmentError, ValueError):
    """Conflicting or incomplete analysis options."""


class InvariantError(EnrichmentError, RuntimeError):
    """A precondition was breached by the caller (unsorted input, missing names)."""
