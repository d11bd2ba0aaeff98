"""Score submission, leaderboard and social sharing.

Persisted keys:
  leaderboard      sorted set, member = username, score = best run
  best:<user>      personal best
  rate:<user>      last accepted score submission (ms)
  rate:pub:<user>  last publish (ms)
  rate:cmt:<user>  last comment (ms)
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Callable

from whirlbird.api.errors import AuthError, InternalError, RateLimitError, ValidationError
from whirlbird.api.identity import IdentityProvider, resolve_username
from whirlbird.api.schemas import (
    CommentScoreResponse,
    InitResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    PublishScoreResponse,
    SubmitScoreResponse,
)
from whirlbird.api.social import SocialPoster
from whirlbird.config.schema import Settings
from whirlbird.storage.base import ScoreStore

LEADERBOARD_KEY = "leaderboard"
BEST_PREFIX = "best:"
RATE_PREFIX = "rate:"
PUBLISH_RATE_PREFIX = "rate:pub:"
COMMENT_RATE_PREFIX = "rate:cmt:"


@dataclass(frozen=True)
class RequestContext:
    """Per-request platform context: the game post and who is playing."""
    post_id: str | None
    identity: IdentityProvider | None = None


def parse_score(value: Any, max_score: int) -> int:
    """Accept only finite integral numbers in [0, max_score]."""
    message = f"score must be an integer 0-{max_score}"
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(message)
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(message)
        value = int(value)
    if value < 0 or value > max_score:
        raise ValidationError(message)
    return value


class ScoreService:
    def __init__(self, store: ScoreStore, social: SocialPoster, settings: Settings,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.social = social
        self.settings = settings
        self.limits = settings.api
        self.clock = clock

    # ---- helpers ------------------------------------------------------
    def _require_post(self, ctx: RequestContext) -> str:
        if not ctx.post_id:
            raise ValidationError("postId missing")
        return ctx.post_id

    def _username(self, ctx: RequestContext) -> str:
        return resolve_username(
            ctx.identity,
            max_length=self.limits.username_max_length,
            placeholder=self.limits.placeholder_username,
        )

    def _score_from_body(self, body: Any) -> int:
        if not isinstance(body, dict):
            raise ValidationError("invalid JSON body")
        return parse_score(body.get("score"), self.limits.max_score)

    def _claim(self, key: str, window: float, message: str) -> None:
        if not self.store.claim_window(key, self.clock(), window):
            raise RateLimitError(message)

    def leaderboard(self) -> list[LeaderboardEntry]:
        """Top-N by descending score, ranks 1-based."""
        size = self.limits.leaderboard_size
        raw = self.store.z_range(LEADERBOARD_KEY, 0, size - 1, reverse=True)
        return [
            LeaderboardEntry(rank=i + 1, username=entry.member, score=int(entry.score))
            for i, entry in enumerate(raw)
        ]

    def best_score(self, username: str) -> int:
        raw = self.store.get(f"{BEST_PREFIX}{username}")
        return int(raw) if raw else 0

    # ---- endpoints ----------------------------------------------------
    def init(self, ctx: RequestContext) -> InitResponse:
        post_id = self._require_post(ctx)
        username = self._username(ctx)
        return InitResponse(
            post_id=post_id,
            username=username,
            best_score=self.best_score(username),
            leaderboard=self.leaderboard(),
        )

    def get_leaderboard(self, ctx: RequestContext) -> LeaderboardResponse:
        post_id = self._require_post(ctx)
        return LeaderboardResponse(post_id=post_id, leaderboard=self.leaderboard())

    def submit(self, ctx: RequestContext, body: Any) -> SubmitScoreResponse:
        post_id = self._require_post(ctx)
        score = self._score_from_body(body)
        username = self._username(ctx)

        self._claim(f"{RATE_PREFIX}{username}", self.limits.rate_window_sec,
                    "slow down - too many submissions")

        # Both writes only ever raise the stored value.
        prev_best = self.store.set_max(f"{BEST_PREFIX}{username}", score)
        self.store.z_add_gt(LEADERBOARD_KEY, username, score)

        return SubmitScoreResponse(
            post_id=post_id,
            new_best=score > prev_best,
            best_score=max(score, prev_best),
            leaderboard=self.leaderboard(),
        )

    def publish(self, ctx: RequestContext, body: Any) -> PublishScoreResponse:
        self._require_post(ctx)
        username = self._require_login(ctx, "login required to publish")
        score = self._score_from_body(body)

        self._claim(f"{PUBLISH_RATE_PREFIX}{username}", self.limits.publish_cooldown_sec,
                    "please wait before publishing again")

        title = f"{self.settings.game_title}: u/{username} scored {score}!"
        try:
            post = self.social.submit_custom_post(title=title)
        except Exception as exc:
            print(f"[api] /publish error (user {username}): {exc}", flush=True)
            raise InternalError(str(exc) or "failed to publish post") from exc
        return PublishScoreResponse(post_id=post.id, post_url=post.url)

    def comment(self, ctx: RequestContext, body: Any) -> CommentScoreResponse:
        post_id = self._require_post(ctx)
        username = self._require_login(ctx, "login required to comment")
        score = self._score_from_body(body)

        self._claim(f"{COMMENT_RATE_PREFIX}{username}", self.limits.publish_cooldown_sec,
                    "please wait before commenting again")

        text = f"I just scored **{score}** in {self.settings.game_title}! Can you beat my score?"
        try:
            comment = self.social.submit_comment(id=f"t3_{post_id}", text=text)
        except Exception as exc:
            print(f"[api] /comment error (user {username}): {exc}", flush=True)
            raise InternalError(str(exc) or "failed to post comment") from exc
        return CommentScoreResponse(comment_id=comment.id)

    def _require_login(self, ctx: RequestContext, message: str) -> str:
        username = self._username(ctx)
        if username == self.limits.placeholder_username:
            raise AuthError(message)
        return username
