"""Builders and fakes shared by the test modules."""
import json
from types import SimpleNamespace

import httpx

from models.permissions import GroupPermissionInput, PermissionCount


def make_group(name, group_id=1, **counts):
    return GroupPermissionInput(
        group_id=group_id,
        group_name=name,
        permission_counts=PermissionCount(**counts),
    )


def _chunk(text):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


class FakeOpenAI:
    """Stands in for ``openai.OpenAI`` and streams canned chunks."""

    def __init__(self, pieces=(), error=None):
        self.pieces = list(pieces)
        self.error = error
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return iter([_chunk(p) for p in self.pieces] + [SimpleNamespace(choices=[])])


class RecordingTransport:
    """Collects JSON-RPC requests and answers them through a handler."""

    def __init__(self, handler):
        self.handler = handler
        self.requests = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request):
        self.requests.append(request)
        return self.handler(request)

    @property
    def payloads(self):
        return [json.loads(r.content) for r in self.requests]


def rpc_result(result):
    return lambda request: httpx.Response(
        200, json={"jsonrpc": "2.0", "id": 1, "result": result})
