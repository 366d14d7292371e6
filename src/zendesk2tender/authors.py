"""Resolve Zendesk user ids to email addresses."""

from typing import Any

from zendesk2tender.client import ZendeskClient


class AuthorResolver:
    """Cache of user id -> email, filled by the user export and extended on demand.

    Ids missing from the cache are fetched once with ``users/{id}.json``. The result is
    cached even when the lookup fails, so an unknown author costs a single request per run.
    """

    def __init__(self, client: ZendeskClient) -> None:
        self.client = client
        self.emails: dict[str, str | None] = {}

    def remember(self, user_id: Any, email: str | None) -> None:
        """Seed the cache with a known user."""
        self.emails[str(user_id)] = email

    def resolve(self, user_id: Any) -> str | None:
        """Return the email of ``user_id``, or None when it cannot be found."""
        if user_id is None:
            return None
        key = str(user_id)
        if key not in self.emails:
            self.emails[key] = self._fetch_email(key)
        return self.emails[key]

    def _fetch_email(self, user_id: str) -> str | None:
        response = self.client.get(f'users/{user_id}.json')
        if not response.success:
            return None
        try:
            body = response.body
            if 'user' in body:
                body = body['user']
            return body['email']
        except Exception:  # noqa: BLE001
            return None
