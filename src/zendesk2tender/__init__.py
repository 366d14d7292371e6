"""The zendesk2tender package exports a Zendesk account into a Tender import archive."""

from zendesk2tender.authors import AuthorResolver
from zendesk2tender.client import ApiResponse, BackoffPolicy, ZendeskClient
from zendesk2tender.main import main
from zendesk2tender.pipeline import default_stages, run_pipeline

__all__ = ['ApiResponse', 'AuthorResolver', 'BackoffPolicy', 'ZendeskClient', 'default_stages', 'main', 'run_pipeline']
