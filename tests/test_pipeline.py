import os
import shutil
import tarfile

import pytest
from conftest import FakeArchiver, StubClient, ok

from zendesk2tender.pipeline import default_stages, make_archive_stage, run_pipeline
from zendesk2tender.tools import TarArchiver

SEARCH = 'search.json?query=type:ticket+status:open+status:pending+status:new&page={}'


def small_account():
    return StubClient(
        {
            'users.json': ok([{'id': 1, 'name': 'Jane', 'email': 'jane@acme.com', 'roles': 0}]),
            'forums.json': ok([{'id': 11, 'name': 'General', 'description': 'All things'}]),
            'forums/11/entries.json': ok([{'id': 5, 'title': 'Hello', 'body': '<p>hi</p>', 'submitter_id': 1}]),
            'entries/5/posts.json': ok({'posts': []}),
            SEARCH.format(1): ok([{'nice_id': 100, 'subject': 'Help', 'submitter_id': 1, 'comments': []}]),
            SEARCH.format(2): ok([]),
        }
    )


def test_stages_run_in_order_and_report_counts(make_ctx, tmp_path):
    client = small_account()
    archiver = FakeArchiver()
    ctx = make_ctx(client)

    results = run_pipeline(ctx, default_stages(archiver, output_dir=str(tmp_path)))

    assert [(r.name, r.files_written) for r in results] == [
        ('users', 1),
        ('categories', 2),
        ('tickets', 2),
        ('archive', 1),
    ]
    assert client.calls[0] == 'users.json'
    assert client.calls[1] == 'forums.json'
    assert 'users/1.json' not in client.calls
    assert archiver.archived == [(ctx.export_dir, os.path.join(str(tmp_path), 'export_acme.tgz'))]
    assert not os.path.exists(ctx.export_dir)


def test_export_dir_is_recreated_fresh(make_ctx):
    ctx = make_ctx(StubClient())
    os.makedirs(os.path.join(ctx.export_dir, 'users'))
    stale = os.path.join(ctx.export_dir, 'users', 'stale.json')
    with open(stale, 'w', encoding='utf-8') as f:
        f.write('{}')

    run_pipeline(ctx, [])
    assert os.listdir(ctx.export_dir) == []


@pytest.mark.skipif(shutil.which('tar') is None, reason='tar is not installed')
def test_end_to_end_archive_contents(make_ctx, tmp_path, capsys):
    ctx = make_ctx(small_account())

    run_pipeline(ctx, default_stages(TarArchiver(), output_dir=str(tmp_path)))

    archive = tmp_path / 'export_acme.tgz'
    with tarfile.open(archive, 'r:gz') as tar:
        files = sorted(os.path.normpath(m.name) for m in tar.getmembers() if m.isfile())
    assert files == [
        'categories/11.json',
        'categories/11/5.json',
        'categories/tickets.json',
        'categories/tickets/100.json',
        'users/jane_acme_com.json',
    ]
    assert not os.path.exists(ctx.export_dir)
    assert f'created {archive}' in capsys.readouterr().out


def test_archive_stage_name():
    assert make_archive_stage(FakeArchiver()).__name__ == 'archive'


def test_archive_is_named_after_subdomain_in_current_directory(make_ctx, capsys):
    archiver = FakeArchiver()
    ctx = make_ctx(StubClient())

    run_pipeline(ctx, [make_archive_stage(archiver)])

    assert archiver.archived == [(ctx.export_dir, 'export_acme.tgz')]
    assert 'created export_acme.tgz\n' in capsys.readouterr().out
