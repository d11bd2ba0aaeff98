from __future__ import annotations

import requests

from whirlbird.api.service import RequestContext, ScoreService
from whirlbird.game.session import ScoreReceipt

POST_HEADER = "X-Whirlbird-Post"
USER_HEADER = "X-Whirlbird-User"


class HttpScoreReporter:
    """Posts finished runs to a running Whirlbird API."""

    def __init__(self, api_url: str, post_id: str, username: str | None = None,
                 timeout: float = 2.0, session: requests.Session | None = None):
        self.url = f"{api_url.rstrip('/')}/api/score"
        self.headers = {"Content-Type": "application/json", POST_HEADER: post_id}
        if username:
            self.headers[USER_HEADER] = username
        self.timeout = timeout
        self.http = session or requests.Session()

    def submit(self, score: int) -> ScoreReceipt:
        r = self.http.post(self.url, json={"score": int(score)}, headers=self.headers, timeout=self.timeout)
        r.raise_for_status()
        data = r.json()
        return ScoreReceipt(new_best=bool(data["newBest"]), best_score=int(data["bestScore"]))


class ServiceScoreReporter:
    """Submits straight into an in-process ScoreService."""

    def __init__(self, service: ScoreService, ctx: RequestContext):
        self.service = service
        self.ctx = ctx

    def submit(self, score: int) -> ScoreReceipt:
        resp = self.service.submit(self.ctx, {"score": int(score)})
        return ScoreReceipt(new_best=resp.new_best, best_score=resp.best_score)
