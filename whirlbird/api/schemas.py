"""Pydantic response schemas for the Whirlbird HTTP API.

Field aliases produce the camelCase keys the browser client reads.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class LeaderboardEntry(_Camel):
    rank: int = Field(ge=1)
    username: str
    score: int


class InitResponse(_Camel):
    type: Literal["init"] = "init"
    post_id: str = Field(alias="postId")
    username: str
    best_score: int = Field(alias="bestScore")
    leaderboard: list[LeaderboardEntry]


class SubmitScoreResponse(_Camel):
    type: Literal["score"] = "score"
    post_id: str = Field(alias="postId")
    new_best: bool = Field(alias="newBest")
    best_score: int = Field(alias="bestScore")
    leaderboard: list[LeaderboardEntry]


class LeaderboardResponse(_Camel):
    type: Literal["leaderboard"] = "leaderboard"
    post_id: str = Field(alias="postId")
    leaderboard: list[LeaderboardEntry]


class PublishScoreResponse(_Camel):
    type: Literal["publish"] = "publish"
    post_id: str = Field(alias="postId")
    post_url: str = Field(alias="postUrl")


class CommentScoreResponse(_Camel):
    type: Literal["comment"] = "comment"
    comment_id: str = Field(alias="commentId")


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str
