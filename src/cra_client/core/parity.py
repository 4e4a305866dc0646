"""Build parity comparison against the server's deploy descriptor."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ParityError, ParityErrorKind


@dataclass(frozen=True)
class DeployInfo:
    """``{build: {hash, time}, git: {hash}}`` as reported by the server."""

    build_hash: str | None = None
    build_time: str | None = None
    git_hash: str | None = None

    @property
    def observed_hash(self) -> str | None:
        return self.build_hash or self.git_hash


@dataclass(frozen=True)
class ParityResult:
    build_hash: str | None
    build_time: str | None
    ok: bool
    error: str | None = None


def _section(payload: dict, name: str, url: str) -> dict:
    section = payload.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ParityError(
            ParityErrorKind.MALFORMED_RESPONSE,
            url,
            f"Deploy info at {url} has a malformed '{name}' section.",
        )
    return section


def _text(section: dict, key: str, label: str, url: str) -> str | None:
    value = section.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ParityError(
            ParityErrorKind.MALFORMED_RESPONSE,
            url,
            f"Deploy info at {url} has a malformed '{label}' value.",
        )
    return str(value).strip() or None


def parse_deploy_info(payload, url: str) -> DeployInfo:
    if not isinstance(payload, dict):
        raise ParityError(
            ParityErrorKind.MALFORMED_RESPONSE,
            url,
            f"Deploy info at {url} is not a JSON object.",
        )
    build = _section(payload, "build", url)
    git = _section(payload, "git", url)
    info = DeployInfo(
        build_hash=_text(build, "hash", "build.hash", url),
        build_time=_text(build, "time", "build.time", url),
        git_hash=_text(git, "hash", "git.hash", url),
    )
    if info.observed_hash is None:
        raise ParityError(
            ParityErrorKind.MALFORMED_RESPONSE,
            url,
            f"Deploy info at {url} reports neither build.hash nor git.hash.",
        )
    return info


def hash_satisfies(observed: str | None, min_hash: str | None) -> bool:
    """Case-insensitive prefix match; no minimum always satisfies."""
    if not min_hash:
        return True
    if not observed:
        return False
    return observed.strip().lower().startswith(min_hash.strip().lower())


def evaluate_parity(
    info: DeployInfo | None,
    min_hash: str | None,
    url: str,
    fetch_error: ParityError | None = None,
) -> ParityResult:
    if fetch_error is not None or info is None:
        message = str(fetch_error) if fetch_error else f"No deploy info available from {url}."
        if min_hash:
            message = f"{message} Required web build: {min_hash}."
        return ParityResult(None, None, ok=not min_hash, error=message)

    observed = info.observed_hash
    if hash_satisfies(observed, min_hash):
        return ParityResult(observed, info.build_time, ok=True)
    return ParityResult(
        observed,
        info.build_time,
        ok=False,
        error=(
            f"Web build mismatch at {url}: required {min_hash}, "
            f"server reports {observed}."
        ),
    )
