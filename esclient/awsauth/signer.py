"""
AWS SigV4 request signing for AWS-hosted Elasticsearch clusters.

Signing itself is delegated to botocore. The signer picks credentials either
from the boto3 default chain (SDK mode, explicit region and service) or from
CredentialsProvider with region and service inferred from the cluster host.
"""

import asyncio
import hashlib
import logging
import re
from typing import Optional, Tuple

import boto3
import httpx
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest

from esclient.awsauth.credentials import CredentialsProvider
from esclient.errors.exceptions import signing_error

logger = logging.getLogger(__name__)

_AWS_HOST_PATTERN = re.compile(
    r"^(?:.+\.)?(?P<region>[a-z]{2}(?:-[a-z]+)+-\d+)\.(?P<service>[a-z0-9-]+)\.amazonaws\.com$"
)

SIGNED_HEADERS = (
    "Authorization",
    "X-Amz-Date",
    "X-Amz-Security-Token",
    "X-Amz-Content-SHA256",
)


def hash_payload(body: Optional[bytes]) -> str:
    """Hex encoded SHA-256 of the request body; empty bodies hash as b''."""
    return hashlib.sha256(body or b"").hexdigest()


def region_and_service_from_host(host: str) -> Optional[Tuple[str, str]]:
    """Infer ``(region, service)`` from hosts like ``x.eu-west-1.es.amazonaws.com``."""
    match = _AWS_HOST_PATTERN.match(host.lower())
    if match is None:
        return None
    return match.group("region"), match.group("service")


class Signer:
    """
    Signs ``httpx.Request`` objects in place.

    Attributes:
        aws_sdk_signer: Use boto3 credentials with the configured region/service
        aws_region: Region used in SDK mode
        aws_service: Service used in SDK mode
    """

    def __init__(
        self,
        aws_sdk_signer: bool = False,
        aws_region: str = "",
        aws_service: str = "",
        credentials_provider: Optional[CredentialsProvider] = None,
        session: Optional[boto3.Session] = None,
    ):
        self.aws_sdk_signer = aws_sdk_signer
        self.aws_region = aws_region or ""
        self.aws_service = aws_service or ""
        self._credentials_provider = credentials_provider
        self._session = session
        self._session_credentials = None

    def validate_aws_sdk_signer(self) -> None:
        if not self.aws_region:
            raise signing_error("No AWS region was provided. Cannot sign request.")
        if not self.aws_service:
            raise signing_error("No AWS service was provided. Cannot sign request.")

    def _load_sdk_credentials(self):
        # Resolved once; refreshable credentials renew themselves when frozen
        if self._session_credentials is None:
            session = self._session or boto3.Session()
            self._session_credentials = session.get_credentials()
        if self._session_credentials is None:
            raise signing_error("No AWS credentials found. Cannot sign request.")
        return self._session_credentials.get_frozen_credentials()

    async def _sdk_credentials(self):
        return await asyncio.to_thread(self._load_sdk_credentials)

    async def _legacy_credentials(self):
        if self._credentials_provider is None:
            self._credentials_provider = CredentialsProvider()
        credentials = await self._credentials_provider.retrieve()
        if not credentials.complete:
            raise signing_error("No AWS credentials found. Cannot sign request.")
        return credentials.to_botocore()

    async def sign(self, request: httpx.Request) -> None:
        """
        Add SigV4 authentication headers to the request.

        Raises:
            ClientError: SIGNING_ERROR when the signer is misconfigured or no
                credentials are available
        """
        if self.aws_sdk_signer:
            self.validate_aws_sdk_signer()
            credentials = await self._sdk_credentials()
            region, service = self.aws_region, self.aws_service
        else:
            inferred = region_and_service_from_host(request.url.host)
            if inferred is None:
                raise signing_error(
                    "Unable to determine AWS region and service from host. Cannot sign request.",
                    details={"host": request.url.host},
                )
            region, service = inferred
            credentials = await self._legacy_credentials()

        body = request.content
        headers = {key: value for key, value in request.headers.items()}
        headers["X-Amz-Content-SHA256"] = hash_payload(body)

        aws_request = AWSRequest(
            method=request.method,
            url=str(request.url),
            data=body,
            headers=headers,
        )
        SigV4Auth(credentials, service, region).add_auth(aws_request)

        for name in SIGNED_HEADERS:
            value = aws_request.headers.get(name)
            if value is not None:
                request.headers[name] = value

        logger.debug("Signed request", extra={
            "extra_data": {
                "url": str(request.url),
                "method": request.method,
                "region": region,
                "service": service,
            }
        })
