from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .errors import ConfigError

DEFAULT_LISTEN = "0.0.0.0:8521"
DEFAULT_HCB_URL = "https://hcb.hackclub.com/api/v3"
DEFAULT_GITHUB_URL = "https://api.github.com"
DEFAULT_AIRTABLE_URL = "https://api.airtable.com/v0"
DEFAULT_PROJECTS_REPO = "https://github.com/hackclub/OnBoard"


def _token(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = (environ.get(name) or "").strip()
    return value or None


@dataclass(frozen=True)
class HcbConfig:
    organization: str = "onboard"
    base_url: str = DEFAULT_HCB_URL
    # Transfers above this amount are left out of every transfer metric.
    amount_ceiling_cents: int = 10000
    requests_per_second: float = 0.0


@dataclass(frozen=True)
class GitHubConfig:
    organization: str = "hackclub"
    repository: str = "OnBoard"
    base_url: str = DEFAULT_GITHUB_URL
    token: Optional[str] = None
    submission_label: str = "Submission"
    requests_per_second: float = 0.0

    @property
    def graphql_url(self) -> str:
        return f"{self.base_url}/graphql"


@dataclass(frozen=True)
class AirtableConfig:
    app_id: Optional[str] = None
    table: str = "Verifications"
    approved_view: str = "Approved"
    pending_view: str = "Pending"
    base_url: str = DEFAULT_AIRTABLE_URL
    token: Optional[str] = None
    # Airtable allows five requests per second per base.
    requests_per_second: float = 5.0


@dataclass(frozen=True)
class ProjectsConfig:
    repository_url: str = DEFAULT_PROJECTS_REPO
    branch: str = "main"
    subdirectory: str = "projects"
    enabled: bool = True


@dataclass(frozen=True)
class ExporterConfig:
    hcb: HcbConfig = field(default_factory=HcbConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    airtable: AirtableConfig = field(default_factory=AirtableConfig)
    projects: ProjectsConfig = field(default_factory=ProjectsConfig)
    listen: str = DEFAULT_LISTEN
    http_timeout: float = 30.0
    max_workers: int = 8
    log_level: str = "INFO"

    @property
    def listen_address(self) -> Tuple[str, int]:
        host, sep, port = self.listen.rpartition(":")
        if not sep or not port.isdigit():
            raise ConfigError(f"invalid listen address: {self.listen!r}")
        return host or "0.0.0.0", int(port)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--listen", default=DEFAULT_LISTEN, help="host:port for the /metrics endpoint")
    parser.add_argument("--http-timeout", type=float, default=30.0, help="Per-request HTTP timeout in seconds")
    parser.add_argument("--max-workers", type=int, default=8, help="Thread pool size for source pipelines")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    parser.add_argument("--hcb-org", default="onboard", help="HCB organization slug")
    parser.add_argument("--hcb-url", default=DEFAULT_HCB_URL, help="HCB API base URL")
    parser.add_argument(
        "--grant-ceiling-cents",
        type=int,
        default=10000,
        help="Transfers above this amount (in cents) are excluded from grant metrics",
    )

    parser.add_argument("--github-org", default="hackclub", help="GitHub organization")
    parser.add_argument("--github-repo", default="OnBoard", help="GitHub repository")
    parser.add_argument("--github-url", default=DEFAULT_GITHUB_URL, help="GitHub API base URL")
    parser.add_argument("--submission-label", default="Submission", help="Label marking submission PRs")

    parser.add_argument("--airtable-table", default="Verifications", help="Airtable table name")
    parser.add_argument("--airtable-approved-view", default="Approved", help="View listing approved records")
    parser.add_argument("--airtable-pending-view", default="Pending", help="View listing pending records")
    parser.add_argument("--airtable-url", default=DEFAULT_AIRTABLE_URL, help="Airtable API base URL")

    parser.add_argument("--projects-repo", default=DEFAULT_PROJECTS_REPO, help="Repository holding projects/")
    parser.add_argument("--projects-branch", default="main", help="Branch to check out")
    parser.add_argument("--no-projects", action="store_true", help="Skip the submitted projects count")


def load_config(args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None) -> ExporterConfig:
    """Build the immutable configuration once at startup.

    Tokens come from GITHUB_TOKEN and AIRTABLE_TOKEN, the Airtable base from
    AIRTABLE_APP_ID; empty values count as absent.
    """
    env = os.environ if environ is None else environ

    if args.grant_ceiling_cents < 0:
        raise ConfigError("--grant-ceiling-cents must not be negative")
    if args.max_workers < 1:
        raise ConfigError("--max-workers must be at least 1")

    config = ExporterConfig(
        hcb=HcbConfig(
            organization=args.hcb_org,
            base_url=args.hcb_url.rstrip("/"),
            amount_ceiling_cents=args.grant_ceiling_cents,
        ),
        github=GitHubConfig(
            organization=args.github_org,
            repository=args.github_repo,
            base_url=args.github_url.rstrip("/"),
            token=_token(env, "GITHUB_TOKEN"),
            submission_label=args.submission_label,
        ),
        airtable=AirtableConfig(
            app_id=_token(env, "AIRTABLE_APP_ID"),
            table=args.airtable_table,
            approved_view=args.airtable_approved_view,
            pending_view=args.airtable_pending_view,
            base_url=args.airtable_url.rstrip("/"),
            token=_token(env, "AIRTABLE_TOKEN"),
        ),
        projects=ProjectsConfig(
            repository_url=args.projects_repo,
            branch=args.projects_branch,
            enabled=not args.no_projects,
        ),
        listen=args.listen,
        http_timeout=args.http_timeout,
        max_workers=args.max_workers,
        log_level=args.log_level.upper(),
    )
    _ = config.listen_address
    return config
