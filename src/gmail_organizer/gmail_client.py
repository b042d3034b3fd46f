"""Gmail API client: the mail/label store the organizer works against."""

from __future__ import annotations

import base64
import binascii
from typing import Any, Protocol

import httplib2
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from gmail_organizer.constants import BODY_SNIPPET_LIMIT, UNREAD_QUERY
from gmail_organizer.errors import AuthRequired, LabelCreationFailed, TransportError
from gmail_organizer.log import get_logger
from gmail_organizer.models import NormalizedMessage

logger = get_logger(__name__)


class MailStore(Protocol):
    """Capabilities consumed from the remote mail service."""

    def list_unread_messages(self, limit: int) -> list[str]: ...

    def get_message(self, message_id: str) -> NormalizedMessage: ...

    def list_labels(self) -> list[dict[str, str]]: ...

    def create_label(self, name: str) -> dict[str, str]: ...

    def modify_message_labels(self, message_id: str, add: list[str], remove: list[str]) -> None: ...


def _is_retryable_http_error(exc: BaseException) -> bool:
    return isinstance(exc, HttpError) and exc.resp.status in (429, 500, 503)


def _decode_part(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def _find_plain_text(part: dict) -> str:
    """Depth-first search for the first decodable text/plain part."""
    if part.get("mimeType") == "text/plain" and part.get("body", {}).get("data"):
        try:
            return _decode_part(part["body"]["data"])
        except (binascii.Error, ValueError) as exc:
            logger.warning("Could not decode text/plain part: %s", exc)
    for child in part.get("parts", []) or []:
        found = _find_plain_text(child)
        if found:
            return found
    return ""


def normalize_message(raw: dict[str, Any]) -> NormalizedMessage:
    """Project a `format=full` Gmail message resource onto NormalizedMessage."""
    payload = raw.get("payload", {}) or {}
    headers = {h["name"].lower(): h["value"] for h in payload.get("headers", [])}

    snippet = raw.get("snippet", "") or ""
    body = _find_plain_text(payload)[:BODY_SNIPPET_LIMIT]
    text = f"{snippet} {body}".strip() if body else snippet

    return NormalizedMessage(
        id=raw.get("id", ""),
        sender_header=headers.get("from", ""),
        subject_header=headers.get("subject", ""),
        text_snippet=text,
    )


def _translate(exc: HttpError, action: str) -> Exception:
    status = exc.resp.status
    if status == 401:
        return AuthRequired(f"Gmail rejected the credentials while trying to {action}. Re-authenticate.")
    return TransportError(f"Gmail API error ({status}) while trying to {action}: {exc}", status=status)


_retry_transient = retry(
    retry=retry_if_exception(_is_retryable_http_error),
    wait=wait_exponential(multiplier=1, min=1, max=60),
    stop=stop_after_attempt(5),
    reraise=True,
)


@_retry_transient
def _execute(request) -> dict:
    return request.execute()


class GmailMailStore:
    """MailStore backed by an authenticated Gmail API service object."""

    def __init__(self, service, user_id: str = "me") -> None:
        self._service = service
        self._user_id = user_id

    def _call(self, request, action: str) -> dict:
        try:
            return _execute(request) or {}
        except HttpError as exc:
            raise _translate(exc, action) from exc
        except RefreshError as exc:
            raise AuthRequired(f"Gmail token refresh failed: {exc}") from exc
        except (httplib2.HttpLib2Error, OSError) as exc:
            raise TransportError(f"Network error while trying to {action}: {exc}") from exc

    def list_unread_messages(self, limit: int) -> list[str]:
        """List up to `limit` unread message IDs in Gmail's default order."""
        resp = self._call(
            self._service.users().messages().list(
                userId=self._user_id,
                q=UNREAD_QUERY,
                maxResults=limit,
                fields="messages/id,nextPageToken",
            ),
            "list unread messages",
        )
        return [m["id"] for m in resp.get("messages", [])][:limit]

    def get_message(self, message_id: str) -> NormalizedMessage:
        raw = self._call(
            self._service.users().messages().get(userId=self._user_id, id=message_id, format="full"),
            f"fetch message {message_id}",
        )
        if not raw.get("payload", {}).get("headers"):
            raise TransportError(f"Message {message_id} has no headers")
        raw.setdefault("id", message_id)
        return normalize_message(raw)

    def list_labels(self) -> list[dict[str, str]]:
        resp = self._call(
            self._service.users().labels().list(userId=self._user_id),
            "list labels",
        )
        return [{"id": lbl["id"], "name": lbl["name"]} for lbl in resp.get("labels", [])]

    def create_label(self, name: str) -> dict[str, str]:
        try:
            label = self._call(
                self._service.users().labels().create(
                    userId=self._user_id,
                    body={
                        "name": name,
                        "labelListVisibility": "labelShow",
                        "messageListVisibility": "show",
                    },
                ),
                f"create label {name!r}",
            )
        except TransportError as exc:
            raise LabelCreationFailed(str(exc), status=exc.status) from exc
        if not label.get("id"):
            raise LabelCreationFailed(f"Gmail returned no id for label {name!r}")
        return {"id": label["id"], "name": label.get("name", name)}

    def modify_message_labels(self, message_id: str, add: list[str], remove: list[str]) -> None:
        if not add and not remove:
            return
        self._call(
            self._service.users().messages().modify(
                userId=self._user_id,
                id=message_id,
                body={"addLabelIds": add, "removeLabelIds": remove},
            ),
            f"modify labels on {message_id}",
        )

    def get_profile(self) -> dict:
        return self._call(self._service.users().getProfile(userId=self._user_id), "read profile")
