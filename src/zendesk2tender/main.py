"""Produce a Tender import archive from the users, forums and tickets of a Zendesk account."""

import argparse
import os

import dotenv
import json5

from zendesk2tender.authors import AuthorResolver
from zendesk2tender.client import DEFAULT_THROTTLE_DELAY, BackoffPolicy, ZendeskClient
from zendesk2tender.exporters import EXPORT_FOLDER, ExportContext, IgnoreRules
from zendesk2tender.pipeline import default_stages, run_pipeline
from zendesk2tender.tools import (
    DEFAULT_HTML2TEXT,
    DEFAULT_TAR,
    Html2TextCommand,
    MarkdownifyConverter,
    TarArchiver,
    find_missing_prerequisites,
)

CONVERTERS = ('html2text', 'markdownify')


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser. Credentials default to the environment (and .env)."""
    parser = argparse.ArgumentParser(
        description='Collect tickets and discussions from the Zendesk API into a Tender import archive.'
    )
    parser.add_argument('-e', '--email', default=os.getenv('ZENDESK_USER'), help='user email address')
    parser.add_argument('-p', '--password', default=os.getenv('ZENDESK_PASSWORD'), help='user password')
    parser.add_argument('-s', '--subdomain', default=os.getenv('ZENDESK_SUBDOMAIN'), help='Zendesk subdomain')
    parser.add_argument(
        '--converter',
        choices=CONVERTERS,
        default='html2text',
        help='How discussion bodies are turned into text: the html2text command or in-process markdownify.',
    )
    parser.add_argument(
        '--html2text',
        default=DEFAULT_HTML2TEXT,
        help=f'html2text executable, must be in your PATH. (default: {DEFAULT_HTML2TEXT})',
    )
    parser.add_argument(
        '--throttle-delay',
        type=float,
        default=DEFAULT_THROTTLE_DELAY,
        help=f'Seconds to wait after a 503 from the API. (default: {DEFAULT_THROTTLE_DELAY:g})',
    )
    parser.add_argument(
        '--throttle-attempts',
        type=int,
        default=None,
        help='Give up on a ticket page after this many 503 responses. (default: never give up)',
    )
    parser.add_argument(
        '--ignore-file',
        type=str,
        default=None,
        help='Path to a JSON file specifying forum, entry, or ticket ids to ignore.',
    )
    return parser


def load_ignore_rules(path: str | None) -> IgnoreRules:
    """Read the ids to skip from a JSON5 ignore file. Problems with the file are reported, not raised."""
    rules = IgnoreRules()
    if not path:
        return rules
    try:
        with open(path, encoding='utf-8') as f:
            loaded_ignores = json5.load(f)
        for key, attr in (('forum', 'forum_ids'), ('entry', 'entry_ids'), ('ticket', 'ticket_ids')):
            raw_ignores = loaded_ignores.get(key, [])
            if isinstance(raw_ignores, list):
                setattr(rules, attr, {item['id'] for item in raw_ignores if isinstance(item, dict) and 'id' in item})
            else:
                print(f"Warning: '{key}' in ignore file is not a list. Skipping {key} ignores.")
        print(f'Loaded ignore configuration from {path}')
        for attr in ('forum_ids', 'entry_ids', 'ticket_ids'):
            if getattr(rules, attr):
                print(f'Ignoring {attr.replace("_", " ")}: {sorted(getattr(rules, attr))}')
    except FileNotFoundError:
        print(f"Warning: Ignore file '{path}' not found. Proceeding without ignoring specific items.")
    except (ValueError, AttributeError) as e:
        print(f"Warning: Error decoding ignore file '{path}'. Error: {e}")
        rules = IgnoreRules()
    return rules


def main(argv: list[str] | None = None) -> int:
    """Run the export. Return the process exit status."""
    dotenv.load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    for option in ('email', 'password', 'subdomain'):
        if not getattr(args, option):
            parser.error(f'--{option} is required')

    prerequisites = [DEFAULT_TAR]
    if args.converter == 'html2text':
        prerequisites.append(args.html2text)
    missing = find_missing_prerequisites(prerequisites)
    if missing:
        for name in missing:
            print(f'missing prerequisite: {name} is not in your PATH')
        return 1

    converter = Html2TextCommand(args.html2text) if args.converter == 'html2text' else MarkdownifyConverter()
    client = ZendeskClient(args.subdomain, args.email, args.password)
    ctx = ExportContext(
        client=client,
        resolver=AuthorResolver(client),
        converter=converter,
        subdomain=args.subdomain,
        export_dir=EXPORT_FOLDER,
        backoff=BackoffPolicy(delay=args.throttle_delay, attempts=args.throttle_attempts),
        ignore=load_ignore_rules(args.ignore_file),
    )
    run_pipeline(ctx, default_stages(TarArchiver()))
    return 0


def main_cli() -> None:
    """Console script entry point."""
    raise SystemExit(main())


if __name__ == '__main__':
    main_cli()
