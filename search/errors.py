"""Search engine exceptions."""


class SearchError(Exception):
    """Base class for search failures."""


class EngineNotLoadedError(SearchError):
    """``search`` was called before ``load_entities``."""


class UnknownEngineError(SearchError, ValueError):
    """No engine is registered under the requested name."""
