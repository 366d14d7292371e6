"""External tools: HTML to plain text conversion and tarball creation."""

import os
import shutil
import subprocess
from collections.abc import Iterable
from typing import Protocol

import markdownify  # type: ignore

DEFAULT_HTML2TEXT = 'html2text'
DEFAULT_TAR = 'tar'
TMP_FOLDER = 'tmp'


class Converter(Protocol):
    """Turns an HTML body into the plain text stored in a comment."""

    def convert(self, html: str, name: str) -> str: ...


class Archiver(Protocol):
    """Packs a directory into a compressed archive."""

    def archive(self, source_dir: str, archive_path: str) -> None: ...


def find_missing_prerequisites(executables: Iterable[str]) -> list[str]:
    """Return the executables that cannot be found on PATH."""
    return [name for name in executables if shutil.which(name) is None]


class Html2TextCommand:
    """Convert HTML by running the html2text command on a temporary file.

    Each body is written to ``{tmp_dir}/{name}_body.html``, the command's stdout becomes the
    text, and the file is removed again.
    """

    def __init__(self, executable: str = DEFAULT_HTML2TEXT, tmp_dir: str = TMP_FOLDER) -> None:
        self.executable = executable
        self.tmp_dir = tmp_dir

    def convert(self, html: str, name: str) -> str:
        """Return the plain text rendering of ``html``."""
        os.makedirs(self.tmp_dir, exist_ok=True)
        path = os.path.abspath(os.path.join(self.tmp_dir, f'{name}_body.html'))
        with open(path, mode='w', encoding='utf-8') as f:
            f.write(html or '')
        try:
            result = subprocess.run(
                [self.executable, path], capture_output=True, encoding='utf-8', errors='replace', check=False
            )
        finally:
            os.remove(path)
        return result.stdout


class MarkdownifyConverter:
    """Convert HTML in-process with markdownify."""

    def convert(self, html: str, name: str) -> str:
        """Return the Markdown rendering of ``html``."""
        return markdownify.markdownify(html, heading_style='ATX') if html else ''


class TarArchiver:
    """Create ``.tgz`` archives with the tar command."""

    def __init__(self, executable: str = DEFAULT_TAR) -> None:
        self.executable = executable

    def archive(self, source_dir: str, archive_path: str) -> None:
        """Pack the contents of ``source_dir`` into ``archive_path``. The exit status is not checked."""
        subprocess.run([self.executable, '-zcf', archive_path, '-C', source_dir, '.'], check=False)
