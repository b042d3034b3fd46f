"""Label cache and name -> id resolution against the mail store."""

from __future__ import annotations

from .errors import LabelCreationFailed, TransportError
from .gmail_client import MailStore
from .log import get_logger
from .notify import Notifier

logger = get_logger(__name__)


class LabelCache:
    """Label id -> display name, rebuilt from the mail store on demand.

    Not authoritative: Gmail owns the label list.
    """

    def __init__(self, labels: dict[str, str] | None = None) -> None:
        self._labels: dict[str, str] = dict(labels or {})
        self.loaded = labels is not None

    def refresh(self, store: MailStore) -> None:
        """Replace the cache contents with the store's current labels."""
        self._labels = {lbl["id"]: lbl["name"] for lbl in store.list_labels()}
        self.loaded = True
        logger.debug("Label cache refreshed (%d labels).", len(self._labels))

    def add(self, label_id: str, name: str) -> None:
        self._labels[label_id] = name

    def find_id(self, name: str) -> str | None:
        """Return the id of the label with this name (case-insensitive)."""
        wanted = name.lower()
        for label_id, label_name in self._labels.items():
            if label_name.lower() == wanted:
                return label_id
        return None

    def has_name(self, name: str) -> bool:
        return self.find_id(name) is not None

    def name_of(self, label_id: str) -> str | None:
        return self._labels.get(label_id)

    def __contains__(self, label_id: object) -> bool:
        return label_id in self._labels

    def __len__(self) -> int:
        return len(self._labels)

    def names(self) -> list[str]:
        return list(self._labels.values())


class LabelResolver:
    """Map label names to ids, creating missing labels through the store."""

    def __init__(self, store: MailStore, cache: LabelCache, notifier: Notifier) -> None:
        self.store = store
        self.cache = cache
        self.notifier = notifier

    def resolve(self, name: str) -> str | None:
        """Return the label id for name, creating the label if needed.

        Returns None when the label cannot be created; callers skip labeling.
        AuthRequired propagates.
        """
        label_id = self.cache.find_id(name)
        if label_id:
            return label_id

        # Narrow the window in which another writer could create the same label.
        try:
            self.cache.refresh(self.store)
        except TransportError as exc:
            logger.warning("Could not refresh labels before creating %r: %s", name, exc)
        label_id = self.cache.find_id(name)
        if label_id:
            return label_id

        logger.info("Creating label: %s", name)
        try:
            label = self.store.create_label(name)
        except TransportError as exc:
            failure = exc if isinstance(exc, LabelCreationFailed) else LabelCreationFailed(str(exc), exc.status)
            logger.error("Error creating label %r: %s", name, failure)
            self.notifier.label_creation_failed(name, failure)
            return None

        self.cache.add(label["id"], label["name"])
        return label["id"]
