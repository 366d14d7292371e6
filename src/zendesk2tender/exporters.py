"""Export Zendesk users, forums, discussions and tickets as Tender import JSON files."""

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any

from zendesk2tender.authors import AuthorResolver
from zendesk2tender.client import BackoffPolicy, ZendeskClient
from zendesk2tender.tools import Converter

EXPORT_FOLDER = '.export-data'
TICKET_QUERY = 'type:ticket+status:open+status:pending+status:new'
TICKETS_CATEGORY = {'name': 'Tickets', 'summary': 'Imported from ZenDesk.'}

SUPPORT_ROLES = {'agent', 'admin'}
USER_ROLES = {'end-user'}


@dataclass
class IgnoreRules:
    """Ids of records that should not be exported."""

    forum_ids: set = field(default_factory=set)
    entry_ids: set = field(default_factory=set)
    ticket_ids: set = field(default_factory=set)


@dataclass
class ExportContext:
    """Everything an export stage needs: API access, author cache, tools and output location."""

    client: ZendeskClient
    resolver: AuthorResolver
    converter: Converter
    subdomain: str
    export_dir: str = EXPORT_FOLDER
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    ignore: IgnoreRules = field(default_factory=IgnoreRules)


def sanitize_name(name: str) -> str:
    """Replace every run of non-word characters with an underscore."""
    return re.sub(r'\W+', '_', name or '')


def user_file_name(user: dict) -> str:
    """Return the file name of a user: the sanitized email, or ``user_{id}`` when there is no email."""
    name = sanitize_name(user.get('email'))
    return name if name.strip('_') else f'user_{user.get("id")}'


def role_state(role: Any) -> str:
    """Map a Zendesk role to the Tender user state: ``user`` for role 0, ``support`` otherwise."""
    if isinstance(role, str):
        value = role.strip().lower()
        if value in USER_ROLES:
            return 'user'
        if value in SUPPORT_ROLES:
            return 'support'
    match = re.match(r'\s*[-+]?\d+', str(role)) if role is not None else None
    return 'user' if match is None or int(match.group()) == 0 else 'support'


def write_json(path: str, data: dict) -> None:
    """Write one export record."""
    with open(path, mode='w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def records(body: Any, key: str) -> list:
    """Return the record list of a response that is either a bare array or wraps it in ``key``."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get(key), list):
        return body[key]
    return []


def report_failure(what: str, response) -> None:
    """Print a failed request the way the export log shows it."""
    print(f'failed to get {what}:')
    print(response.detail or response)


def export_users(ctx: ExportContext) -> int:
    """Write one file per user and fill the author cache. Return the number of files written."""
    print('Fetching users...')
    response = ctx.client.get('users.json')
    if not response.success:
        report_failure('users', response)
        return 0

    dir_name = os.path.join(ctx.export_dir, 'users')
    os.makedirs(dir_name, exist_ok=True)
    written = 0
    for user in records(response.body, 'users'):
        email = user.get('email')
        ctx.resolver.remember(user.get('id'), email)
        write_json(
            os.path.join(dir_name, f'{user_file_name(user)}.json'),
            {
                'name': user.get('name'),
                'email': email,
                'created_at': user.get('created_at'),
                'updated_at': user.get('updated_at'),
                'state': role_state(user.get('roles', user.get('role'))),
            },
        )
        written += 1
    print(f'Exported {written} users.')
    return written


def export_categories(ctx: ExportContext) -> int:
    """Write one file per forum plus its discussions. Return the number of files written."""
    print('Fetching forums...')
    response = ctx.client.get('forums.json')
    if not response.success:
        report_failure('categories', response)
        return 0

    dir_name = os.path.join(ctx.export_dir, 'categories')
    os.makedirs(dir_name, exist_ok=True)
    written = 0
    for forum in records(response.body, 'forums'):
        if forum['id'] in ctx.ignore.forum_ids:
            print(f'Ignoring forum ID {forum["id"]}.')
            continue
        write_json(
            os.path.join(dir_name, f'{forum["id"]}.json'),
            {'name': forum.get('name'), 'summary': forum.get('description')},
        )
        written += 1 + export_discussions(ctx, forum['id'])
    print(f'Exported {written} category and discussion files.')
    return written


def export_discussions(ctx: ExportContext, forum_id: Any) -> int:
    """Write one file per entry of a forum, its posts following the entry body as comments."""
    dir_name = os.path.join(ctx.export_dir, 'categories', str(forum_id))
    os.makedirs(dir_name, exist_ok=True)

    response = ctx.client.get(f'forums/{forum_id}/entries.json')
    if not response.success:
        report_failure(f'entries for forum {forum_id}', response)
        return 0

    written = 0
    for entry in records(response.body, 'entries'):
        if entry['id'] in ctx.ignore.entry_ids:
            print(f'Ignoring entry ID {entry["id"]}.')
            continue
        comments = [
            entry_comment(ctx, entry, f'entry_{entry["id"]}', entry.get('body'), entry.get('submitter_id'))
        ]
        posts = ctx.client.get(f'entries/{entry["id"]}/posts.json')
        if posts.success:
            comments += [
                entry_comment(ctx, post, f'post_{post.get("id")}', post.get('body'), post.get('user_id'))
                for post in records(posts.body, 'posts')
            ]
        else:
            report_failure(f'posts for entry {entry["id"]}', posts)
        write_json(os.path.join(dir_name, f'{entry["id"]}.json'), {'title': entry.get('title'), 'comments': comments})
        written += 1
    return written


def entry_comment(ctx: ExportContext, record: dict, name: str, html: str | None, author_id: Any) -> dict:
    """Build a discussion comment, converting its HTML body to text."""
    return {
        'body': ctx.converter.convert(html or '', name),
        'author_email': ctx.resolver.resolve(author_id),
        'created_at': record.get('created_at'),
        'updated_at': record.get('updated_at'),
    }


def ticket_id(ticket: dict) -> Any:
    """Return the id a ticket is filed under."""
    return ticket.get('nice_id') or ticket.get('id')


def fetch_tickets(ctx: ExportContext) -> list:
    """Collect open, pending and new tickets page by page until an empty page.

    A throttled (503) page is retried after the back-off delay. Any other failure stops the
    search and keeps what was collected so far.
    """
    tickets = []
    page = 1
    waited = 0
    while True:
        response = ctx.client.get(f'search.json?query={TICKET_QUERY}&page={page}')
        if response.success:
            results = records(response.body, 'results')
            if not results:
                break
            tickets += results
            page += 1
            waited = 0
        elif response.throttled and ctx.backoff.allows(waited):
            print(f'got a 503 (API throttle), waiting {ctx.backoff.delay:g} seconds...')
            ctx.backoff.wait()
            waited += 1
        else:
            report_failure('tickets', response)
            break
    return tickets


def export_tickets(ctx: ExportContext) -> int:
    """Write the synthetic Tickets category and one file per ticket. Return the number of files written."""
    print('Fetching tickets...')
    tickets = [ticket for ticket in fetch_tickets(ctx) if ticket_id(ticket) not in ctx.ignore.ticket_ids]
    if not tickets:
        print('No tickets to export.')
        return 0

    dir_name = os.path.join(ctx.export_dir, 'categories')
    os.makedirs(dir_name, exist_ok=True)
    write_json(os.path.join(dir_name, 'tickets.json'), TICKETS_CATEGORY)

    dir_name = os.path.join(dir_name, 'tickets')
    os.makedirs(dir_name, exist_ok=True)
    for ticket in tickets:
        comments = [
            {
                'body': post.get('value'),
                'author_email': ctx.resolver.resolve(post.get('author_id')),
                'created_at': post.get('created_at'),
                'updated_at': post.get('updated_at'),
            }
            for post in ticket.get('comments') or []
        ]
        write_json(
            os.path.join(dir_name, f'{ticket_id(ticket)}.json'),
            {
                'title': ticket.get('subject'),
                'author_email': ctx.resolver.resolve(ticket.get('submitter_id')),
                'created_at': ticket.get('created_at'),
                'updated_at': ticket.get('updated_at'),
                'comments': comments,
            },
        )
    print(f'Exported {len(tickets)} tickets.')
    return len(tickets) + 1
