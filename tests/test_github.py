from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import requests

from nezarai import github
from nezarai.github import RepoRef, build_repo_context, parse_github_url, summarize_repo


class FakeResponse:
  def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
    self.status_code = status_code
    self._payload = payload
    self.text = text

  @property
  def ok(self) -> bool:
    return self.status_code < 400

  def json(self) -> Any:
    if self._payload is None:
      raise ValueError("no json")
    return self._payload


REPO_INFO = {
    "name": "hello",
    "full_name": "octo/hello",
    "description": "Contoh repo",
    "stargazers_count": 42,
    "forks_count": 3,
    "watchers_count": 42,
    "open_issues_count": 1,
    "created_at": "2024-01-05T10:00:00Z",
    "updated_at": "2024-02-01T10:00:00Z",
    "html_url": "https://github.com/octo/hello",
    "license": {"name": "MIT License"},
    "owner": {"login": "octo", "avatar_url": "https://avatars.example/octo"},
}


def test_parse_full_url_strips_git_suffix():
  ref = parse_github_url("https://github.com/octo/hello.git")
  assert (ref.owner, ref.repo, ref.path, ref.type) == ("octo", "hello", None, None)


def test_parse_short_form():
  ref = parse_github_url("octo/hello")
  assert (ref.owner, ref.repo) == ("octo", "hello")


def test_parse_blob_path():
  ref = parse_github_url("https://github.com/octo/hello/blob/main/src/app.py")
  assert ref.type == "blob"
  assert ref.path == "src/app.py"


def test_parse_rejects_garbage():
  assert parse_github_url("bukan url") is None
  assert parse_github_url("") is None


def test_fetchers_swallow_failures(monkeypatch):
  def _boom(*args, **kwargs):
    raise requests.ConnectionError("offline")

  monkeypatch.setattr(github.requests, "get", _boom)
  assert github.get_repo_info("octo", "hello") is None
  assert github.get_recent_commits("octo", "hello") == []


def test_readme_is_truncated_and_headers_sent(monkeypatch):
  seen: List[Dict[str, Any]] = []

  def _get(url, headers=None, params=None, timeout=None):
    seen.append({"url": url, "headers": headers})
    return FakeResponse(text="x" * 9000)

  monkeypatch.setattr(github.requests, "get", _get)
  readme = github.get_readme("octo", "hello")
  assert len(readme) == github.GITHUB_README_LIMIT
  assert seen[0]["url"].endswith("/repos/octo/hello/readme")
  assert seen[0]["headers"]["Accept"] == github.ACCEPT_RAW
  assert seen[0]["headers"]["User-Agent"] == "NezarAI-Bot"


def test_fetch_bundle_includes_blob_file(monkeypatch):
  monkeypatch.setattr(github, "get_repo_info", lambda o, r: REPO_INFO)
  monkeypatch.setattr(github, "get_readme", lambda o, r: "# Hello")
  monkeypatch.setattr(github, "get_languages", lambda o, r: {"Python": 100})
  monkeypatch.setattr(github, "get_directory_structure", lambda o, r: [])
  monkeypatch.setattr(github, "get_recent_commits", lambda o, r: [])
  monkeypatch.setattr(github, "get_file_content", lambda o, r, p: f"content of {p}")

  ref = RepoRef(owner="octo", repo="hello", path="src/app.py", type="blob")
  bundle = asyncio.run(github.fetch_repo_bundle(ref))
  assert bundle["info"] is REPO_INFO
  assert bundle["file_content"] == "content of src/app.py"


def test_repo_context():
  bundle = {
      "info": REPO_INFO,
      "readme": "# Hello",
      "languages": {"Python": 100, "Shell": 5},
      "structure": [{"name": "src", "type": "dir"}, {"name": "setup.py", "type": "file"}],
      "commits": [{"commit": {"message": "Fix bug\n\ndetail", "author": {"date": "2024-02-01T10:00:00Z"}}}],
      "file_content": None,
  }
  context = build_repo_context(bundle)
  assert "- Nama: octo/hello" in context
  assert "Python, Shell" in context
  assert "📁 src\n📄 setup.py" in context
  assert "- Fix bug (01/02/2024)" in context
  assert "📖 README:\n# Hello" in context
  assert "FILE YANG DIMINTA" not in context


def test_analysis_prompts():
  prompt = github.build_analysis_prompt("question", "CTX", REPO_INFO, "Bagaimana cara install?")
  assert "**Pertanyaan User**: Bagaimana cara install?" in prompt
  assert "git clone https://github.com/octo/hello" in github.build_analysis_prompt(
      "analyze", "CTX", REPO_INFO)
  assert "## 🤔 Apa itu hello?" in github.build_analysis_prompt("explain", "CTX", REPO_INFO)


def test_summarize_repo():
  summary = summarize_repo(REPO_INFO, {"Python": 1})
  assert summary == {
      "name": "hello",
      "fullName": "octo/hello",
      "description": "Contoh repo",
      "stars": 42,
      "forks": 3,
      "issues": 1,
      "languages": ["Python"],
      "url": "https://github.com/octo/hello",
      "owner": {"login": "octo", "avatar": "https://avatars.example/octo"},
  }
