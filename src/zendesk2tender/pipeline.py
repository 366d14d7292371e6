"""Ordered export stages: users, categories and discussions, tickets, then the archive."""

import os
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from zendesk2tender.exporters import ExportContext, export_categories, export_tickets, export_users
from zendesk2tender.tools import Archiver, TarArchiver


@dataclass
class StageResult:
    """Files written by one stage."""

    name: str
    files_written: int


Stage = Callable[[ExportContext], int]


def archive_name(subdomain: str) -> str:
    """Return the file name of the final archive."""
    return f'export_{subdomain}.tgz'


def prepare_export_dir(export_dir: str) -> None:
    """Start from an empty export directory."""
    if os.path.exists(export_dir):
        shutil.rmtree(export_dir)
    os.makedirs(export_dir)


def make_archive_stage(archiver: Archiver | None = None, output_dir: str = '.') -> Stage:
    """Build the stage that packs the export directory and removes it."""
    archiver = archiver or TarArchiver()

    def archive_stage(ctx: ExportContext) -> int:
        export_file = archive_name(ctx.subdomain)
        if output_dir != '.':
            export_file = os.path.join(output_dir, export_file)
        archiver.archive(ctx.export_dir, export_file)
        shutil.rmtree(ctx.export_dir, ignore_errors=True)
        print(f'created {export_file}')
        return 1

    archive_stage.__name__ = 'archive'
    return archive_stage


def default_stages(archiver: Archiver | None = None, output_dir: str = '.') -> list[Stage]:
    """Return the stages of a full export in the order they must run."""
    return [export_users, export_categories, export_tickets, make_archive_stage(archiver, output_dir)]


def stage_name(stage: Stage) -> str:
    """Return a readable name for a stage."""
    return getattr(stage, '__name__', repr(stage)).removeprefix('export_')


def run_pipeline(ctx: ExportContext, stages: Sequence[Stage]) -> list[StageResult]:
    """Run ``stages`` one after another on a fresh export directory."""
    prepare_export_dir(ctx.export_dir)
    results = []
    for stage in stages:
        result = StageResult(name=stage_name(stage), files_written=stage(ctx))
        print(f'--- {result.name}: {result.files_written} file(s) ---')
        results.append(result)
    return results
