"""Enrichment client exceptions."""


class EnrichmentError(Exception):
    """The enrichment service could not be reached or returned an error.

    Never fatal to an import: the listen is kept without extra metadata.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
