"""
AWS credentials for signing requests to AWS-hosted clusters.

Credentials come from environment variables first, then from the IAM role of
the EC2 instance the process runs on.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Mapping, Optional

import httpx
from botocore.credentials import Credentials as BotocoreCredentials

logger = logging.getLogger(__name__)

ENV_ACCESS_KEY = "AWS_ACCESS_KEY"
ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
ENV_SECRET_KEY = "AWS_SECRET_KEY"
ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_SESSION_TOKEN = "AWS_SESSION_TOKEN"

METADATA_ADDRESS = ("169.254.169.254", 80)
CONNECT_TIMEOUT = 0.1
IAM_CREDENTIALS_URL = "http://169.254.169.254/latest/meta-data/iam/security-credentials/"

# Role credentials count as expired this long before their expiration time
EXPIRY_WINDOW = timedelta(minutes=4)


@dataclass
class Credentials:
    """A set of AWS credentials."""
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""
    expiration: Optional[datetime] = None

    @property
    def complete(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    def to_botocore(self) -> BotocoreCredentials:
        return BotocoreCredentials(
            self.access_key_id,
            self.secret_access_key,
            self.session_token or None,
        )


def _parse_expiration(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring unparseable credentials expiration", extra={
            "extra_data": {"expiration": value}
        })
        return None


async def _default_connectivity_check() -> bool:
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(*METADATA_ADDRESS), timeout=CONNECT_TIMEOUT
        )
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    return True


class CredentialsProvider:
    """
    Resolves AWS credentials from the environment or the EC2 instance role.

    Whether the process runs on EC2 is detected once per provider instance
    and memoized on it. Role credentials are reused until is_expired().
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        environ: Optional[Mapping[str, str]] = None,
        connectivity_check: Optional[Callable[[], Awaitable[bool]]] = None,
    ):
        self._http_client = http_client
        self._environ = environ
        self._connectivity_check = connectivity_check or _default_connectivity_check
        self._on_ec2: Optional[bool] = None
        self._role_credentials: Optional[Credentials] = None
        self.expiration: Optional[datetime] = None

    def _env(self, name: str) -> str:
        environ = self._environ if self._environ is not None else os.environ
        return environ.get(name, "")

    async def retrieve(self) -> Credentials:
        """
        Produce credentials, first from environment variables, then from the
        IAM role when keys are missing and the process runs on EC2.
        """
        creds = Credentials(
            access_key_id=self._env(ENV_ACCESS_KEY_ID) or self._env(ENV_ACCESS_KEY),
            secret_access_key=self._env(ENV_SECRET_ACCESS_KEY) or self._env(ENV_SECRET_KEY),
            session_token=self._env(ENV_SESSION_TOKEN),
        )
        if creds.complete or not await self.on_ec2():
            return creds

        if self._role_credentials is not None and not self.is_expired():
            return self._role_credentials

        creds = await self._get_iam_role_credentials()
        self.expiration = creds.expiration
        self._role_credentials = creds if creds.complete else None
        return creds

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Whether role credentials are within 4 minutes of expiring.

        Credentials without an expiration never expire.
        """
        if self.expiration is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expiration - EXPIRY_WINDOW < now

    async def on_ec2(self) -> bool:
        """Whether the EC2 metadata service is reachable. Checked once."""
        if self._on_ec2 is None:
            self._on_ec2 = await self._connectivity_check()
            logger.debug("EC2 metadata service detection", extra={
                "extra_data": {"on_ec2": self._on_ec2}
            })
        return self._on_ec2

    async def _get(self, url: str) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(url)
        async with httpx.AsyncClient(timeout=1.0) as client:
            return await client.get(url)

    async def _get_iam_role_list(self) -> List[str]:
        try:
            response = await self._get(IAM_CREDENTIALS_URL)
        except httpx.HTTPError as e:
            logger.warning("Failed to list IAM roles from instance metadata", extra={
                "extra_data": {"error": str(e)}
            })
            return []
        if response.status_code != 200:
            return []
        return [line.strip() for line in response.text.splitlines() if line.strip()]

    async def _get_iam_role_credentials(self) -> Credentials:
        roles = await self._get_iam_role_list()
        if not roles:
            return Credentials()

        # Use the first role in the list
        role_url = IAM_CREDENTIALS_URL + roles[0]
        try:
            response = await self._get(role_url)
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to read IAM role credentials", extra={
                "extra_data": {"role": roles[0], "error": str(e)}
            })
            return Credentials()

        return Credentials(
            access_key_id=payload.get("AccessKeyId", ""),
            secret_access_key=payload.get("SecretAccessKey", ""),
            session_token=payload.get("Token", ""),
            expiration=_parse_expiration(payload.get("Expiration")),
        )
