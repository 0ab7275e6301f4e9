"""Error taxonomy shared by the place curation pipeline."""


class PlaceCuratorError(RuntimeError):
    """Base class for worker errors."""


class ConfigurationError(PlaceCuratorError):
    """Raised when mandatory configuration is missing. Fatal before any work starts."""


class ExternalApiError(PlaceCuratorError):
    """A single search page or AI call failed; the caller degrades to empty or fallback."""


class GooglePlacesError(ExternalApiError):
    """Raised when the Places API returns a non-successful response."""


class SerpApiError(ExternalApiError):
    """Raised when SerpAPI returns an error payload or exhausts its retries."""


class AITextError(ExternalApiError):
    """Raised when the AI text service fails or returns nothing usable."""


class ClassificationMismatch(PlaceCuratorError):
    """The AI reply could not be correlated back to the candidates it was asked about."""


class PersistenceError(PlaceCuratorError):
    """A single place_cache upsert failed."""


class StreamDisconnect(PlaceCuratorError):
    """The progress stream consumer is gone."""
