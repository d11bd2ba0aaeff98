from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SocialPost:
    id: str
    url: str
    title: str = ""


@dataclass(frozen=True)
class SocialComment:
    id: str
    post_id: str = ""
    text: str = ""


class SocialPoster(Protocol):
    def submit_custom_post(self, *, title: str) -> SocialPost: ...
    def submit_comment(self, *, id: str, text: str) -> SocialComment: ...


class LocalSocialPoster:
    """Keeps posts and comments in memory; used by the dev server and tests."""

    def __init__(self, base_url: str = "https://whirlbird.local"):
        self.base_url = base_url.rstrip("/")
        self.posts: list[SocialPost] = []
        self.comments: list[SocialComment] = []
        self._lock = threading.Lock()

    def submit_custom_post(self, *, title: str) -> SocialPost:
        post_id = f"t3_{uuid.uuid4().hex[:8]}"
        post = SocialPost(id=post_id, url=f"{self.base_url}/comments/{post_id[3:]}", title=title)
        with self._lock:
            self.posts.append(post)
        return post

    def submit_comment(self, *, id: str, text: str) -> SocialComment:
        comment = SocialComment(id=f"t1_{uuid.uuid4().hex[:8]}", post_id=id, text=text)
        with self._lock:
            self.comments.append(comment)
        return comment
