"""HTTP client module for deploy-gateway.

Provides :class:`ApiClient`, the blocking JSON client backed by
:class:`httpx.Client` through which every named operation reaches the
deployment server.

Example::

    from deploy_gateway.client import ApiClient

    with ApiClient.from_config(config) as client:
        apps = client.call("/application")
"""

from deploy_gateway.client.api_client import PAYLOAD_METHODS, ApiClient

__all__ = ["ApiClient", "PAYLOAD_METHODS"]
