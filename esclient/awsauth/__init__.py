"""
AWS request signing for esclient.
"""

from esclient.awsauth.credentials import Credentials, CredentialsProvider
from esclient.awsauth.node import SigningNodeMixin, signing_node_class
from esclient.awsauth.signer import Signer, hash_payload, region_and_service_from_host

__all__ = [
    "Credentials",
    "CredentialsProvider",
    "Signer",
    "SigningNodeMixin",
    "hash_payload",
    "region_and_service_from_host",
    "signing_node_class",
]
