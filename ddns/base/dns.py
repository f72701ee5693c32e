"""DNS provider blueprint."""

from abc import ABC, abstractmethod

from .records import DesiredRecord, RecordType, RemoteRecord, ZoneInfo


class DNSBlueprint(ABC):
    """Abstract interface for the provider calls the reconciler needs.

    Each method performs exactly one request. Retrying is the caller's job,
    so implementations must raise
    :class:`~ddns.base.exceptions.NetworkError` for transient transport
    failures and the non-retryable DDNS errors for everything else.
    """

    @abstractmethod
    def get_zone_info(self, zone_id: str) -> ZoneInfo:
        """Look up a zone; ``ZoneInfo.name`` is the zone's base domain."""

    @abstractmethod
    def list_records(
        self, zone_id: str, record_type: RecordType, name: str
    ) -> list[RemoteRecord]:
        """List records matching an exact name and type.

        Args:
            zone_id: Zone identifier.
            record_type: ``A`` or ``AAAA``.
            name: Fully qualified record name.

        Returns:
            Matching records in provider response order, possibly empty.
        """

    @abstractmethod
    def create_record(self, zone_id: str, record: DesiredRecord) -> str:
        """Create a record and return the provider-assigned id."""

    @abstractmethod
    def update_record(self, zone_id: str, record_id: str, record: DesiredRecord) -> None:
        """Overwrite every field of an existing record.

        Args:
            zone_id: Zone identifier.
            record_id: Id of the record to overwrite.
            record: Complete desired field set (last write wins).
        """
