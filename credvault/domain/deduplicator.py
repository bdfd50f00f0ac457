from credvault.domain.models import SanitizedRecord


class Deduplicator:
    """
    Tracks (normalised url, username) pairs seen in one ingestion batch.

    The password is not part of the key: the first occurrence of a
    url/username pair wins. Nothing is remembered across batches.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    @staticmethod
    def key(record: SanitizedRecord) -> str:
        return f"{record.url}:{record.username.strip()}"

    def seen(self, record: SanitizedRecord) -> bool:
        return self.key(record) in self._seen

    def add(self, record: SanitizedRecord) -> bool:
        """Mark ``record`` as seen. Returns False if it was already present."""
        key = self.key(record)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __len__(self) -> int:
        return len(self._seen)
