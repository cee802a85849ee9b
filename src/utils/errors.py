"""Custom exception hierarchy for adeSync.

All application exceptions inherit from :class:`AdeSyncError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "ade_listing", "event_page", "sqlite") caused the failure.

The hierarchy is organized by pipeline layer:

    AdeSyncError  (base -- catch-all for any adeSync error)
    +-- ListingFetchError        (fetch layer: listing API page request)
    +-- LineupFetchError         (parse layer: event detail page request)
    +-- RecordValidationError    (ingestion boundary: malformed raw item)
    +-- StoreError               (store layer: one failed read/write)
    +-- RunStateError            (ledger: mutation of a completed run)
    +-- NoEventsFoundError       (batch trigger: nothing to parse)
    +-- ConfigurationError       (startup: invalid settings)

Per-item loops catch the layer-specific subclasses, log them, bump the
run's error counter and continue.  Anything escaping a run marks it
``error``.
"""


class AdeSyncError(Exception):
    """Base exception for all adeSync errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[ade_listing] HTTP 503 fetching persons page 4``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Fetch / parse layer
# ---------------------------------------------------------------------------

class ListingFetchError(AdeSyncError):
    """Raised when a listing API page request fails.

    Distinct from an empty page: the fetcher stops paginating either way,
    but a fetch error is counted against the run and yields ``partial``.
    """

    def __init__(
        self,
        message: str = "Listing page fetch failed",
        provider_name: str | None = None,
        page: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.page = page


class LineupFetchError(AdeSyncError):
    """Raised when an event detail page cannot be retrieved."""

    def __init__(
        self,
        message: str = "Event page fetch failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RecordValidationError(AdeSyncError):
    """Raised when a raw listing item fails boundary validation."""

    def __init__(
        self,
        message: str = "Raw record failed validation",
        provider_name: str | None = None,
        external_id: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.external_id = external_id


# ---------------------------------------------------------------------------
# Store / ledger
# ---------------------------------------------------------------------------

class StoreError(AdeSyncError):
    """Raised when a datastore read or write fails."""

    def __init__(
        self,
        message: str = "Datastore operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RunStateError(AdeSyncError):
    """Raised when a completed (immutable) run is mutated."""

    def __init__(
        self,
        message: str = "Run is no longer running",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class NoEventsFoundError(AdeSyncError):
    """Raised when a batch trigger selects zero events."""

    def __init__(
        self,
        message: str = "No events found matching criteria",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(AdeSyncError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
