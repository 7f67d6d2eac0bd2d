"""Fixtures shared by the end-to-end job tests.

The article store is replaced by an in-memory session that behaves like the
real API: unique source URLs, 422 on duplicates and the processed flag set
when a rewrite is created.
"""

import pytest
import requests
from typing import Any, Dict, List, Optional
from unittest.mock import Mock
from urllib.parse import urlparse


class InMemoryArticleStore:
    """Stands in for the requests session used by ArticleStoreClient."""

    def __init__(self):
        self.headers: Dict[str, str] = {}
        self.articles: List[Dict[str, Any]] = []
        self.unavailable = False

    def request(self, method: str, url: str, timeout: Optional[int] = None, json: Optional[Dict] = None):
        if self.unavailable:
            raise requests.ConnectionError("article store down")

        path = urlparse(url).path
        if method == "GET" and path == "/api/articles/latest":
            return self._latest()
        if method == "POST" and path == "/api/articles":
            return self._create(json)
        return self._response(404, {"message": "Not Found"})

    def add_original(self, title: str, content: str, source_url: str) -> Dict[str, Any]:
        return self._create({
            "title": title, "content": content, "source_url": source_url, "version": "original",
        }).json()["data"]

    @property
    def originals(self) -> List[Dict[str, Any]]:
        return [a for a in self.articles if a["version"] == "original"]

    @property
    def rewrites(self) -> List[Dict[str, Any]]:
        return [a for a in self.articles if a["version"] == "rewritten"]

    def _latest(self):
        pending = [a for a in self.originals if not a["is_rewritten"]]
        if not pending:
            return self._response(404, {"message": "No unprocessed articles"})
        return self._response(200, {"data": dict(pending[-1])})

    def _create(self, payload: Dict[str, Any]):
        source_url = payload.get("source_url")
        if source_url and any(a.get("source_url") == source_url for a in self.articles):
            return self._response(422, {
                "message": "The given data was invalid.",
                "errors": {"source_url": ["The source url has already been taken."]},
            })

        article = dict(payload, id=len(self.articles) + 1, is_rewritten=False)
        if payload["version"] == "rewritten":
            for parent in self.articles:
                if parent["id"] == payload["parent_article_id"]:
                    parent["is_rewritten"] = True
        self.articles.append(article)
        return self._response(201, {"data": dict(article)})

    def _response(self, status_code: int, body: Dict[str, Any]) -> Mock:
        response = Mock(status_code=status_code)
        response.json.return_value = body
        return response


@pytest.fixture
def article_store():
    return InMemoryArticleStore()
