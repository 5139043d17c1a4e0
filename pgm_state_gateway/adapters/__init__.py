from .sink_rest import OpcUaRestSink
from .machine_store import MachineContextStore

__all__ = ['OpcUaRestSink', 'MachineContextStore']
