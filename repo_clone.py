"""
Clone a git repository into a local "Repository" folder.

The `git` client does the work; this module validates the URL, prepares the
target folder (deleting a previous clone of the same name) and reports the
outcome as a CloneResult instead of raising.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urlparse

GIT_URL_PATTERN = re.compile(r"^(https://|git@)[\w.-]+(:|/)[\w./-]+(\.git)?$")
SSH_URL_PATTERN = re.compile(r"git@.*:(.+?)(?:\.git)?$")
KNOWN_GIT_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")


@dataclass
class CloneResult:
    """Outcome of a clone attempt."""
    success: bool
    message: str
    target_path: Optional[Path] = None
    error: Optional[str] = None


def is_likely_git_url(repo_url: str) -> bool:
    """True when the URL looks like an HTTPS/SSH git URL or names a known host."""
    if not repo_url or not isinstance(repo_url, str):
        return False

    repo_url = repo_url.strip()
    if GIT_URL_PATTERN.match(repo_url):
        return True
    return any(host in repo_url for host in KNOWN_GIT_HOSTS)


def _strip_git_suffix(name: str) -> str:
    return name[:-4] if name.endswith(".git") else name


def extract_repo_name(repo_url: str) -> Optional[str]:
    """Repository folder name from an HTTPS, SSH or plain URL."""
    repo_url = repo_url.strip().rstrip("/")

    if repo_url.startswith("https://"):
        parts = [p for p in urlparse(repo_url).path.split("/") if p]
        return _strip_git_suffix(parts[-1]) if parts else None

    if repo_url.startswith("git@"):
        match = SSH_URL_PATTERN.match(repo_url)
        if match:
            return _strip_git_suffix(match.group(1).split("/")[-1]) or None

    name = _strip_git_suffix(repo_url.split("/")[-1])
    return name or None


def build_clone_command(
    repo_url: str,
    target: Path,
    branch: Optional[str] = None,
    shallow: bool = False,
) -> List[str]:
    cmd = ["git", "clone"]
    if shallow:
        cmd += ["--depth", "1"]
    if branch:
        cmd += ["--branch", branch]
    cmd += [repo_url, str(target)]
    return cmd


def clone_repository(
    repo_url: str,
    target_root: Union[str, Path] = "Repository",
    branch: Optional[str] = None,
    shallow: bool = False,
) -> CloneResult:
    """Clone `repo_url` into `<target_root>/<repo name>`, replacing any previous clone."""
    if not repo_url or not isinstance(repo_url, str):
        return CloneResult(False, "Invalid repository URL")

    repo_url = repo_url.strip()
    if not is_likely_git_url(repo_url):
        logging.warning(f"URL might not be a valid Git repository URL: {repo_url}")
        return CloneResult(False, "URL might not be a valid Git repository URL.")

    if shutil.which("git") is None:
        return CloneResult(False, "Git is not installed on this system")

    repo_name = extract_repo_name(repo_url)
    if not repo_name:
        return CloneResult(False, "Could not extract repository name from URL")

    try:
        root = Path(target_root).resolve()
        if not root.exists():
            root.mkdir(parents=True, exist_ok=True)
            logging.info(f"Created repository folder at {root}")

        target = root / repo_name
        if target.exists():
            logging.info(f"Repository folder {target} already exists. Deleting...")
            shutil.rmtree(target)

        logging.info(f"Cloning repository from {repo_url}...")
        result = subprocess.run(
            build_clone_command(repo_url, target, branch, shallow),
            capture_output=True,
            text=True,
            check=False,
            encoding="utf-8",
        )
    except OSError as e:
        return CloneResult(False, f"An error occurred: {e}", error=str(e))

    if result.returncode != 0:
        stderr = result.stderr.strip()
        return CloneResult(False, f"Failed to clone repository: {stderr}", error=stderr)

    return CloneResult(True, f"Repository cloned successfully to {target}", target_path=target)
