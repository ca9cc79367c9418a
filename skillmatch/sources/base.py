from abc import ABC, abstractmethod

from skillmatch.models import ListingRecord


class ListingSource(ABC):
    """A feed of project listings.

    ``fetch`` returns fully populated records whose ``source`` is the
    listing site's host name; ingestion dedupes and stores them.
    """

    name: str

    @abstractmethod
    def fetch(self, limit: int = 15) -> list[ListingRecord]:
        pass
