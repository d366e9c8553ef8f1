"""
Base data provider interface.

A provider reads an organisation's state from some source and returns it as
an immutable OrganisationSnapshot. All blocking I/O of an audit run happens
here, before the engine starts.
"""

from abc import ABC, abstractmethod

from ..core.models import OrganisationSnapshot


class DataProvider(ABC):
    """
    Abstract base class for snapshot sources.

    Implementations raise AuthenticationFailure, OrganisationNotFound or
    DataProviderTransientError (RateLimitExceeded included). They do not
    retry.
    """

    @abstractmethod
    def fetch_snapshot(self, organisation: str, token: str) -> OrganisationSnapshot:
        """
        Read the current state of an organisation.

        Args:
            organisation: Organisation login
            token: Authentication token

        Returns:
            OrganisationSnapshot: Point-in-time organisation data
        """


class StaticDataProvider(DataProvider):
    """Provider returning a fixed snapshot. Used for offline audits and tests."""

    def __init__(self, snapshot: OrganisationSnapshot):
        self.snapshot = snapshot

    def fetch_snapshot(self, organisation: str, token: str) -> OrganisationSnapshot:
        return self.snapshot
