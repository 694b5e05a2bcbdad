"""
Configuration module for the web server stack.

Reads environment variables (optionally seeded from a .env.<environment>
file) and provides the values the stack needs: resource tags, the DNS
flag and the hosted zone / domain settings.
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import aws_cdk as cdk
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_ENVIRONMENT = "development"
DEFAULT_REGION = "us-east-1"

LISTENER_MODE_HTTP = "http"
LISTENER_MODE_HTTPS = "https"


def load_environment_file(
    environment: Optional[str] = None, root: Optional[Path] = None
) -> Optional[Path]:
    """
    Load environment variables from .env.<environment> in the project root.

    Args:
        environment: Environment name. Defaults to the ENVIRONMENT variable,
            then 'development'.
        root: Directory holding the .env files. Defaults to the project root.

    Returns:
        Path of the loaded file, or None when it does not exist.
    """
    environment = environment or os.getenv("ENVIRONMENT") or DEFAULT_ENVIRONMENT
    env_path = Path(root or PROJECT_ROOT) / f".env.{environment}"
    if not env_path.exists():
        print(f"Warning: .env file not found at {env_path}", file=sys.stderr)
        return None

    load_dotenv(dotenv_path=env_path, override=True)
    return env_path


def parse_tags(raw: Optional[str]) -> List[Tuple[str, str]]:
    """
    Parse the TAGS variable into (key, value) pairs.

    TAGS is a JSON array of objects, e.g. '[{"key": "team", "value": "web"}]'.

    Args:
        raw: Raw TAGS value. None or blank means no tags.

    Returns:
        List of (key, value) tuples in input order.

    Raises:
        ValueError: If the value is not a JSON list of key/value objects.
    """
    if raw is None or not raw.strip():
        return []

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"TAGS is not valid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise ValueError(
            f"TAGS must be a JSON list of key/value objects, got {type(parsed).__name__}"
        )

    tags = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise ValueError(f"TAGS[{index}] must be an object, got {item!r}")
        key = item.get("key")
        value = item.get("value")
        if not isinstance(key, str) or not key:
            raise ValueError(f"TAGS[{index}] is missing a non-empty string 'key': {item!r}")
        if not isinstance(value, str):
            raise ValueError(f"TAGS[{index}] is missing a string 'value': {item!r}")
        tags.append((key, value))
    return tags


def parse_flag(raw: Optional[str]) -> bool:
    """Return True only for the string 'true' (case-insensitive)."""
    return (raw or "").strip().lower() == "true"


def get_cdk_environment(environ: Optional[Mapping[str, str]] = None) -> cdk.Environment:
    """
    Build the account/region environment the stack is pinned to.

    The default VPC lookup needs a concrete account and region.
    """
    environ = os.environ if environ is None else environ
    return cdk.Environment(
        account=environ.get("AWS_ACCOUNT_ID") or environ.get("CDK_DEFAULT_ACCOUNT"),
        region=environ.get("AWS_DEFAULT_REGION")
        or environ.get("CDK_DEFAULT_REGION")
        or DEFAULT_REGION,
    )


class StackConfig:
    """
    Settings for WebServerStack.

    Built once by the app entry point and passed into the stack, so the
    stack never reads environment variables itself.
    """

    DNS_VARIABLES = ("HOSTED_ZONE_ID", "ZONE_NAME", "DNS_NAME")

    def __init__(
        self,
        tags: Optional[List[Tuple[str, str]]] = None,
        create_dns_record: bool = False,
        hosted_zone_id: str = "",
        zone_name: str = "",
        dns_name: str = "",
    ) -> None:
        self.tags = list(tags or [])
        self.create_dns_record = create_dns_record
        self.hosted_zone_id = hosted_zone_id
        self.zone_name = zone_name
        self.dns_name = dns_name

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StackConfig":
        """
        Read the stack settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ValueError: If TAGS is malformed.
        """
        environ = os.environ if environ is None else environ
        return cls(
            tags=parse_tags(environ.get("TAGS")),
            create_dns_record=parse_flag(environ.get("CREATE_DNS_RECORD")),
            hosted_zone_id=environ.get("HOSTED_ZONE_ID", ""),
            zone_name=environ.get("ZONE_NAME", ""),
            dns_name=environ.get("DNS_NAME", ""),
        )

    @property
    def listener_mode(self) -> str:
        """Listener topology selected by the DNS flag."""
        return LISTENER_MODE_HTTPS if self.create_dns_record else LISTENER_MODE_HTTP

    def missing_dns_settings(self) -> List[str]:
        """
        Names of the DNS variables left empty while the DNS flag is set.

        Incomplete settings are not rejected here; CloudFormation reports
        them when the certificate and record are created.
        """
        if not self.create_dns_record:
            return []
        values = (self.hosted_zone_id, self.zone_name, self.dns_name)
        return [name for name, value in zip(self.DNS_VARIABLES, values) if not value]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "tags": [{"key": key, "value": value} for key, value in self.tags],
            "create_dns_record": self.create_dns_record,
            "hosted_zone_id": self.hosted_zone_id,
            "zone_name": self.zone_name,
            "dns_name": self.dns_name,
        }

    def __repr__(self) -> str:
        return f"StackConfig({self.as_dict()!r})"
