import logging
from typing import Optional

import requests

from pgm_state_gateway.core.interfaces import INodeSink, IAdapter
from pgm_state_gateway.core.nodes import NodeAssertion
from pgm_state_gateway.core.settings import Settings

logger = logging.getLogger("pgm_state.sink_rest")


class OpcUaRestSink(INodeSink, IAdapter):
    """
    Writes node updates to the OPC-UA REST gateway.
    PUT {scheme}://localhost:{port}/api/OpcUaNode/UpdateNodeValue

    Fire-and-forget: failures are logged and the update is dropped.
    """
    def __init__(self, settings: Optional[Settings] = None, timeout: float = 5.0, verify: bool = True):
        self.settings = settings
        self.timeout = timeout
        self.verify = verify

    def connect(self):
        # Stateless, one request per update
        pass

    def disconnect(self):
        pass

    def send(self, assertion: NodeAssertion) -> None:
        if self.settings is None:
            return

        url = self.settings.update_url
        try:
            response = requests.put(url, json=assertion.to_packet(), timeout=self.timeout, verify=self.verify)
            if response.status_code >= 400:
                logger.warning(f"Gateway returned {response.status_code} for {assertion.name}={assertion.value!r}")
            else:
                logger.debug(f"Updated {assertion.name}={assertion.value!r}")
        except Exception as e:
            logger.error(f"Node update {assertion.name} failed: {e}")
