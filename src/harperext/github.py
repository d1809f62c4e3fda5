from __future__ import annotations

from dataclasses import dataclass
import logging
import os

import httpx

from harperext import config
from harperext.errors import FetchError, NoCompatibleAssetError

GITHUB_API_ROOT = "https://api.github.com/repos"
RELEASES_PAGE_SIZE = 30

logger = logging.getLogger(__name__)


@dataclass
class ReleaseAsset:
    name: str
    url: str


@dataclass
class ReleaseInfo:
    version: str
    assets: list[ReleaseAsset]


def _github_headers() -> dict[str, str]:
    headers = {"Accept": "application/vnd.github+json"}
    token = config.github_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _raise_friendly_http_error(exc: httpx.HTTPError) -> FetchError:
    if isinstance(exc, httpx.ProxyError):
        return FetchError(
            "Failed to fetch latest release.",
            "Proxy error. Check HTTP_PROXY/HTTPS_PROXY or corporate proxy settings.",
        )
    if isinstance(exc, httpx.ConnectError):
        return FetchError(
            "Failed to fetch latest release.",
            "Network connection failed. Check internet connectivity, DNS, firewall, or VPN.",
        )
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 403 and exc.response.headers.get("x-ratelimit-remaining") == "0":
            return FetchError(
                "GitHub API rate limit exceeded.",
                "Set HARPEREXT_GITHUB_TOKEN or retry after the rate limit resets.",
            )
        if status == 404:
            return FetchError(
                "Release repository was not found.",
                "Check HARPEREXT_GITHUB_REPO and access permissions.",
            )
        if status in {401, 403}:
            return FetchError(
                "GitHub request was unauthorized.",
                "Check HARPEREXT_GITHUB_TOKEN and repository access.",
            )
        return FetchError(
            "Failed to fetch latest release.",
            f"GitHub API responded with HTTP {status}.",
        )
    return FetchError(
        "Failed to fetch latest release.",
        "Check network connectivity, proxy settings, or GitHub availability.",
    )


def validate_repo(repo: str, example: str = "elijah-potter/harper") -> str:
    normalized = repo.strip()
    parts = normalized.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise FetchError(
            "Invalid repository value.",
            f"Use format: owner/repo (example: {example}).",
        )
    return normalized


def configured_repo(
    env_var: str = "HARPEREXT_GITHUB_REPO",
    default_repo: str = "elijah-potter/harper",
) -> str:
    repo = os.environ.get(env_var, "").strip() or default_repo
    return validate_repo(repo, example=default_repo)


def releases_api_url(repo: str) -> str:
    return f"{GITHUB_API_ROOT}/{repo}/releases"


def _parse_assets(item: dict) -> list[ReleaseAsset]:
    return [
        ReleaseAsset(name=asset["name"], url=asset["browser_download_url"])
        for asset in item.get("assets") or []
        if isinstance(asset, dict) and "name" in asset and "browser_download_url" in asset
    ]


def fetch_latest_release(
    repo: str,
    require_assets: bool = True,
    pre_release: bool = False,
    timeout: float = 30.0,
) -> ReleaseInfo:
    url = f"{releases_api_url(validate_repo(repo))}?per_page={RELEASES_PAGE_SIZE}"
    logger.debug("Listing releases from %s", url)
    try:
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            response = client.get(url, headers=_github_headers())
            response.raise_for_status()
            payload = response.json()
    except httpx.HTTPError as exc:
        raise _raise_friendly_http_error(exc) from exc
    except ValueError as exc:
        raise FetchError("Invalid GitHub response.", "Expected JSON release list.") from exc

    if not isinstance(payload, list):
        raise FetchError("Invalid GitHub response.", "Expected release list.")

    for item in payload:
        if not isinstance(item, dict):
            continue
        tag = item.get("tag_name")
        if not tag or item.get("draft"):
            continue
        if bool(item.get("prerelease")) != pre_release:
            continue
        assets = _parse_assets(item)
        if require_assets and not assets:
            continue
        logger.info("Latest release of %s is %s", repo, tag)
        return ReleaseInfo(version=tag, assets=assets)

    kind = "pre-release" if pre_release else "stable release"
    raise FetchError(
        f"Failed to fetch latest release: no {kind} with downloadable assets in {repo}.",
        "Check the repository's releases page.",
    )


def find_asset(release: ReleaseInfo, expected_name: str) -> ReleaseAsset:
    for asset in release.assets:
        if asset.name == expected_name:
            return asset
    raise NoCompatibleAssetError(
        f"No compatible Harper binary found for {expected_name}.",
        f"Release {release.version} has no asset with that name.",
    )
