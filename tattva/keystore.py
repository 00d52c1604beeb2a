"""Remembers which media URL a browser session is watching.

Backed by the Flask session cookie, which lives until the browser session
ends: a reload resumes the analysis, a new browser or device does not. Only
the media URL is kept; the user id always comes from the current identity, so
a shared browser never hands one user's analysis to the next.
"""

from tattva.channel import SubscriptionKey


STORAGE_NAME = "tattva_media_url"


class SessionKeyStore:
    def __init__(self, storage):
        self.storage = storage

    def save(self, key):
        self.storage[STORAGE_NAME] = key.media_url

    def load(self):
        value = self.storage.get(STORAGE_NAME)
        return value if isinstance(value, str) and value else None

    def load_key(self, user_id):
        media_url = self.load()
        if not user_id or not media_url:
            return None
        return SubscriptionKey(user_id, media_url)

    def clear(self):
        self.storage.pop(STORAGE_NAME, None)
