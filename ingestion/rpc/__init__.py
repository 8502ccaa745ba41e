# ingestion/rpc/__init__.py
from .scripted import Transport, ScriptedTransport
from .http_backend import HttpTransport

__all__ = ["Transport", "ScriptedTransport", "HttpTransport"]
