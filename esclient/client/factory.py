"""
Client factory.

new_client() selects the client generation named by ClientConfig.client_lib.
ClientConfig.from_settings() builds the configuration from Settings.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from esclient.awsauth.signer import Signer
from esclient.client.base import Client
from esclient.client.legacy import LegacyClient
from esclient.client.v710 import ESClient
from esclient.config.settings import Library, Settings
from esclient.errors.exceptions import unsupported_operation
from esclient.transport.http import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    """
    Configuration for new_client().

    Attributes:
        address: Base URL of the cluster
        client_lib: Client generation to build
        max_retries: Retries of the legacy HTTP transport
        indexes: Indexes the health check requires
        sign_requests: Sign requests to the cluster with AWS SigV4
        signer: Signer used when sign_requests is set; a default one is
            created if None
        transport: Transport class handed to AsyncElasticsearch
        request_timeout: Request timeout in seconds
        treat_yellow_as_warning: Report a yellow cluster as WARNING
        fail_fast: Stop probing indexes at the first failure
    """
    address: str
    client_lib: Library = Library.LEGACY
    max_retries: int = 3
    indexes: List[str] = field(default_factory=list)
    sign_requests: bool = False
    signer: Optional[Signer] = None
    transport: Optional[type] = None
    request_timeout: float = DEFAULT_TIMEOUT
    treat_yellow_as_warning: bool = False
    fail_fast: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        signer = None
        if settings.sign_requests:
            signer = Signer(
                aws_sdk_signer=settings.aws_sdk_signer,
                aws_region=settings.aws_region or "",
                aws_service=settings.aws_service,
            )

        return cls(
            address=settings.elastic_address,
            client_lib=settings.client_library,
            max_retries=settings.max_retries,
            indexes=list(settings.indexes),
            sign_requests=settings.sign_requests,
            signer=signer,
            request_timeout=settings.request_timeout,
            treat_yellow_as_warning=settings.treat_yellow_as_warning,
            fail_fast=settings.index_check_fail_fast,
        )


def new_client(config: ClientConfig) -> Client:
    """
    Build the client named by config.client_lib.

    Raises:
        ClientError: UNSUPPORTED_OPERATION for OpenSearch,
            INVALID_CONFIGURATION for an invalid address of the SDK client
    """
    logger.info("creating elasticsearch client", extra={
        "extra_data": {"client_library": str(config.client_lib), "address": config.address}
    })

    signer = None
    if config.sign_requests:
        signer = config.signer or Signer()

    if config.client_lib == Library.GO_ELASTIC_V710:
        options: dict[str, Any] = {"request_timeout": config.request_timeout}
        if config.transport is not None:
            options["transport_class"] = config.transport
        return ESClient(
            config.address,
            indexes=config.indexes,
            treat_yellow_as_warning=config.treat_yellow_as_warning,
            fail_fast=config.fail_fast,
            signer=signer,
            **options,
        )

    if config.client_lib == Library.OPENSEARCH:
        raise unsupported_operation("Opensearch client is currently not implemented")

    return LegacyClient(
        config.address,
        max_retries=config.max_retries,
        request_timeout=config.request_timeout,
        indexes=config.indexes,
        signer=signer,
        treat_yellow_as_warning=config.treat_yellow_as_warning,
        fail_fast=config.fail_fast,
    )
