"""Exception hierarchy for the research pipeline."""


class DeepResearchError(Exception):
    """Base exception for deep research failures."""


class ModelCallError(DeepResearchError):
    """The model backend failed to produce a stream."""


class SearchProviderError(DeepResearchError):
    """A search backend failed or returned an unusable payload.

    Raised only inside provider modules; the search adapter converts it into
    an empty result list.
    """
