"""
SigV4 signing for requests sent through the official Elasticsearch client.

elastic_transport hands every request to a node class just before it goes on
the wire. signing_node_class() derives a node class that signs the request
with a Signer and forwards the signed headers.
"""

from typing import Any, Optional, Type

import httpx
from elastic_transport import AiohttpHttpNode, HttpHeaders

from esclient.awsauth.signer import SIGNED_HEADERS, Signer


class SigningNodeMixin:
    """Signs each request before delegating to the next node class."""

    signer: Optional[Signer] = None

    async def perform_request(
        self,
        method: str,
        target: str,
        body: Optional[bytes] = None,
        headers: Optional[HttpHeaders] = None,
        **kwargs: Any,
    ):
        request_headers = HttpHeaders(headers) if headers is not None else HttpHeaders()

        if self.signer is not None:
            request = httpx.Request(
                method,
                self.base_url + target,
                headers=dict(request_headers.items()),
                content=body,
            )
            await self.signer.sign(request)
            for name in SIGNED_HEADERS:
                if name in request.headers:
                    request_headers[name] = request.headers[name]

        return await super().perform_request(
            method, target, body=body, headers=request_headers, **kwargs
        )


def signing_node_class(signer: Signer, base: Type = AiohttpHttpNode) -> Type:
    """Return a subclass of ``base`` whose requests are signed by ``signer``."""
    return type(
        f"Signing{base.__name__}",
        (SigningNodeMixin, base),
        {"signer": signer},
    )
