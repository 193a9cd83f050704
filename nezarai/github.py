from __future__ import annotations

import asyncio
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel

from .config import (
    GITHUB_API,
    GITHUB_TOKEN,
    GITHUB_USER_AGENT,
    GITHUB_README_LIMIT,
    GITHUB_FILE_LIMIT,
    HTTP_TIMEOUT_SECONDS,
)
from .utils import _log_debug

ACCEPT_JSON = "application/vnd.github.v3+json"
ACCEPT_RAW = "application/vnd.github.v3.raw"

_URL_PATTERNS = [
    re.compile(r"github\.com/([^/]+)/([^/\s#?]+)"),
    re.compile(r"^([^/\s]+)/([^/\s#?]+)$"),
]
_PATH_RE = re.compile(r"github\.com/[^/]+/[^/]+/(blob|tree)/[^/]+/(.+)")

ANALYSIS_ACTIONS = ("analyze", "review", "explain", "question")

SYSTEM_PROMPT = """Kamu adalah AI assistant yang ahli dalam menganalisis repository GitHub.
Kamu memahami berbagai bahasa pemrograman, framework, dan best practices development.
Berikan analisis yang insightful, praktis, dan mudah dipahami.
Jika ada informasi yang kurang, berikan analisis terbaik berdasarkan data yang tersedia."""


class RepoRef(BaseModel):
  owner: str
  repo: str
  path: Optional[str] = None
  type: Optional[str] = None


def parse_github_url(url: str) -> Optional[RepoRef]:
  value = (url or "").strip()
  for pattern in _URL_PATTERNS:
    match = pattern.search(value)
    if not match:
      continue
    owner, repo = match.group(1), match.group(2)
    if repo.endswith(".git"):
      repo = repo[:-4]
    path_match = _PATH_RE.search(value)
    return RepoRef(
        owner=owner,
        repo=repo,
        path=path_match.group(2) if path_match else None,
        type=path_match.group(1) if path_match else None,
    )
  return None


# -------------------------
# GitHub REST fetchers
# -------------------------
def _headers(accept: str) -> Dict[str, str]:
  headers = {"Accept": accept, "User-Agent": GITHUB_USER_AGENT}
  if GITHUB_TOKEN:
    headers["Authorization"] = f"Bearer {GITHUB_TOKEN}"
  return headers


def _get(path: str, accept: str = ACCEPT_JSON,
         params: Optional[Dict[str, Any]] = None) -> Optional[requests.Response]:
  try:
    resp = requests.get(f"{GITHUB_API}{path}",
                        headers=_headers(accept),
                        params=params,
                        timeout=HTTP_TIMEOUT_SECONDS)
  except requests.RequestException as exc:
    _log_debug(f"[GITHUB] request failed path={path}: {exc}")
    return None
  if not resp.ok:
    _log_debug(f"[GITHUB] {resp.status_code} path={path}")
    return None
  return resp


def _get_json(path: str, params: Optional[Dict[str, Any]] = None) -> Any:
  resp = _get(path, params=params)
  if resp is None:
    return None
  try:
    return resp.json()
  except ValueError:
    return None


def get_repo_info(owner: str, repo: str) -> Optional[Dict[str, Any]]:
  data = _get_json(f"/repos/{owner}/{repo}")
  return data if isinstance(data, dict) else None


def get_readme(owner: str, repo: str) -> Optional[str]:
  resp = _get(f"/repos/{owner}/{repo}/readme", accept=ACCEPT_RAW)
  if resp is None:
    return None
  return resp.text[:GITHUB_README_LIMIT]


def get_languages(owner: str, repo: str) -> Optional[Dict[str, int]]:
  data = _get_json(f"/repos/{owner}/{repo}/languages")
  return data if isinstance(data, dict) else None


def get_file_content(owner: str, repo: str, path: str) -> Optional[str]:
  resp = _get(f"/repos/{owner}/{repo}/contents/{path}", accept=ACCEPT_RAW)
  if resp is None:
    return None
  return resp.text[:GITHUB_FILE_LIMIT]


def get_directory_structure(owner: str, repo: str, path: str = "") -> List[Dict[str, Any]]:
  data = _get_json(f"/repos/{owner}/{repo}/contents/{path}")
  return data if isinstance(data, list) else []


def get_recent_commits(owner: str, repo: str, limit: int = 5) -> List[Dict[str, Any]]:
  data = _get_json(f"/repos/{owner}/{repo}/commits", params={"per_page": limit})
  return data if isinstance(data, list) else []


async def fetch_repo_bundle(ref: RepoRef) -> Dict[str, Any]:
  owner, repo = ref.owner, ref.repo
  tasks = [
      asyncio.to_thread(get_repo_info, owner, repo),
      asyncio.to_thread(get_readme, owner, repo),
      asyncio.to_thread(get_languages, owner, repo),
      asyncio.to_thread(get_directory_structure, owner, repo),
      asyncio.to_thread(get_recent_commits, owner, repo),
  ]
  if ref.type == "blob" and ref.path:
    tasks.append(asyncio.to_thread(get_file_content, owner, repo, ref.path))
  results = await asyncio.gather(*tasks)
  bundle = {
      "info": results[0],
      "readme": results[1],
      "languages": results[2],
      "structure": results[3],
      "commits": results[4],
      "file_content": results[5] if len(results) > 5 else None,
  }
  return bundle


async def fetch_repo_summary(ref: RepoRef) -> Dict[str, Any]:
  info, languages = await asyncio.gather(
      asyncio.to_thread(get_repo_info, ref.owner, ref.repo),
      asyncio.to_thread(get_languages, ref.owner, ref.repo),
  )
  return {"info": info, "languages": languages}


# -------------------------
# Prompt construction
# -------------------------
def _format_date(value: Any) -> str:
  if not isinstance(value, str) or not value:
    return "-"
  try:
    return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%d/%m/%Y")
  except ValueError:
    return value


def _commit_line(commit: Dict[str, Any]) -> Optional[str]:
  body = commit.get("commit") if isinstance(commit, dict) else None
  if not isinstance(body, dict):
    return None
  message = str(body.get("message") or "").split("\n")[0]
  author = body.get("author") if isinstance(body.get("author"), dict) else {}
  return f"- {message} ({_format_date(author.get('date'))})"


def build_repo_context(bundle: Dict[str, Any]) -> str:
  info = bundle.get("info") or {}
  languages = bundle.get("languages")
  language_list = ", ".join(languages.keys()) if languages else "Unknown"
  top_level = "\n".join(
      f"{'📁' if item.get('type') == 'dir' else '📄'} {item.get('name')}"
      for item in (bundle.get("structure") or [])[:20]
      if isinstance(item, dict))
  commit_lines = [
      line for line in (_commit_line(c) for c in (bundle.get("commits") or [])[:5])
      if line
  ]
  license_info = info.get("license") if isinstance(info.get("license"), dict) else {}
  readme = bundle.get("readme")

  context = f"""
📦 REPOSITORY GITHUB:
- Nama: {info.get('full_name')}
- Deskripsi: {info.get('description') or 'Tidak ada deskripsi'}
- ⭐ Stars: {info.get('stargazers_count')}
- 🍴 Forks: {info.get('forks_count')}
- 👀 Watchers: {info.get('watchers_count')}
- 🐛 Issues: {info.get('open_issues_count')}
- 📅 Dibuat: {_format_date(info.get('created_at'))}
- 🔄 Update: {_format_date(info.get('updated_at'))}
- 🔗 URL: {info.get('html_url')}
- 📜 License: {license_info.get('name') or 'Tidak ada'}

💻 BAHASA PEMROGRAMAN:
{language_list}

📂 STRUKTUR FILE (root):
{top_level}

📝 COMMIT TERBARU:
{chr(10).join(commit_lines)}

{f'📖 README:{chr(10)}{readme}' if readme else 'README tidak tersedia'}
"""
  file_content = bundle.get("file_content")
  if file_content:
    context += f"\n📄 FILE YANG DIMINTA:\n```\n{file_content}\n```\n"
  return context


def build_analysis_prompt(action: str, context: str, info: Dict[str, Any],
                          question: Optional[str] = None) -> str:
  if action == "review":
    return f"""Review kode dari repository GitHub berikut:

{context}

Format jawaban HARUS seperti ini:

## 📋 Code Review Summary

### ✅ Kelebihan
1. **[Aspek positif 1]**: [penjelasan]
2. **[Aspek positif 2]**: [penjelasan]
3. **[Aspek positif 3]**: [penjelasan]

### ⚠️ Area Perbaikan
1. **[Issue 1]**: [penjelasan dan saran]
2. **[Issue 2]**: [penjelasan dan saran]
3. **[Issue 3]**: [penjelasan dan saran]

### 🔒 Keamanan
- [Checklist keamanan yang relevan]

### 📈 Skalabilitas
[Analisis singkat tentang skalabilitas kode]

### 🔧 Rekomendasi
1. [Saran improvement 1]
2. [Saran improvement 2]
3. [Saran improvement 3]

### 📊 Rating
| Aspek | Score |
|-------|-------|
| Code Quality | ⭐⭐⭐⭐☆ |
| Documentation | ⭐⭐⭐☆☆ |
| Best Practices | ⭐⭐⭐⭐☆ |

Gunakan bahasa Indonesia."""

  if action == "explain":
    return f"""Jelaskan repository GitHub berikut untuk pemula:

{context}

Format jawaban HARUS seperti ini:

## 🤔 Apa itu {info.get('name')}?
[Penjelasan sederhana dalam bahasa sehari-hari, seperti menjelaskan ke teman]

## 🎯 Untuk Apa?
- [Use case 1]
- [Use case 2]
- [Use case 3]

## 🛠️ Teknologi yang Digunakan
[Jelaskan setiap teknologi dengan analogi sederhana]

## 📚 Cara Mulai Belajar
1. **Langkah 1**: [instruksi]
2. **Langkah 2**: [instruksi]
3. **Langkah 3**: [instruksi]

## 🌟 Tips untuk Pemula
> 💡 [Tip penting untuk pemula]

- [Tip 1]
- [Tip 2]
- [Tip 3]

Gunakan bahasa Indonesia yang friendly!"""

  if action == "question":
    return f"""Berdasarkan repository GitHub berikut:

{context}

**Pertanyaan User**: {question or 'Jelaskan repository ini'}

Format jawaban dengan jelas dan terstruktur menggunakan Markdown.
Gunakan heading, bullet points, dan code blocks jika diperlukan.
Jawab dalam bahasa Indonesia."""

  return f"""Analisis repository GitHub berikut:

{context}

Format jawaban HARUS seperti ini:

## 🎯 Tujuan Project
[Jelaskan fungsi utama repo ini dalam 2-3 kalimat]

## 🏗️ Tech Stack
| Kategori | Teknologi |
|----------|-----------|
| Bahasa | [bahasa yang digunakan] |
| Framework | [framework jika ada] |
| Database | [database jika ada] |

## ✨ Fitur Utama
- **[Fitur 1]**: [penjelasan singkat]
- **[Fitur 2]**: [penjelasan singkat]
- **[Fitur 3]**: [penjelasan singkat]

## 📊 Statistik
- ⭐ **Stars**: {info.get('stargazers_count')} - [interpretasi popularitas]
- 🍴 **Forks**: {info.get('forks_count')} - [interpretasi aktivitas]
- 🐛 **Issues**: {info.get('open_issues_count')} - [interpretasi maintenance]

## 🚀 Quick Start
```bash
# Clone repository
git clone {info.get('html_url')}

# Langkah selanjutnya (sesuaikan dengan repo)
```

## 💡 Cocok Untuk
[Jelaskan untuk siapa repo ini cocok digunakan]

Gunakan bahasa Indonesia."""


def summarize_repo(info: Dict[str, Any], languages: Optional[Dict[str, int]]) -> Dict[str, Any]:
  owner = info.get("owner") if isinstance(info.get("owner"), dict) else {}
  return {
      "name": info.get("name"),
      "fullName": info.get("full_name"),
      "description": info.get("description"),
      "stars": info.get("stargazers_count"),
      "forks": info.get("forks_count"),
      "issues": info.get("open_issues_count"),
      "languages": list(languages.keys()) if languages else [],
      "url": info.get("html_url"),
      "owner": {
          "login": owner.get("login"),
          "avatar": owner.get("avatar_url"),
      },
  }
