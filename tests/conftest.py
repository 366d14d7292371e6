import pytest

from zendesk2tender.authors import AuthorResolver
from zendesk2tender.client import ApiResponse, BackoffPolicy
from zendesk2tender.exporters import ExportContext


def ok(body):
    return ApiResponse(body=body, success=True, status=200)


def failed(status, detail='boom'):
    return ApiResponse(body=None, success=False, status=status, detail=detail)


class StubClient:
    """Serves canned responses by path. A list of responses is consumed one call at a time."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, path):
        self.calls.append(path)
        response = self.routes.get(path, failed(404, f'{path}: not found'))
        if isinstance(response, list):
            return response.pop(0) if len(response) > 1 else response[0]
        return response


class FakeConverter:
    def __init__(self):
        self.converted = []

    def convert(self, html, name):
        self.converted.append((name, html))
        return f'text:{html}'


class FakeArchiver:
    def __init__(self):
        self.archived = []

    def archive(self, source_dir, archive_path):
        self.archived.append((source_dir, archive_path))


class FakeSleep:
    def __init__(self):
        self.delays = []

    def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def stub_client():
    return StubClient()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def make_ctx(tmp_path, fake_sleep):
    def factory(client, **kwargs):
        kwargs.setdefault('converter', FakeConverter())
        kwargs.setdefault('backoff', BackoffPolicy(delay=30, sleep=fake_sleep))
        return ExportContext(
            client=client,
            resolver=AuthorResolver(client),
            subdomain='acme',
            export_dir=str(tmp_path / '.export-data'),
            **kwargs,
        )

    return factory
