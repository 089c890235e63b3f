"""VSS Migration Tool

Replays the revision history of a Visual SourceSafe project into a Git,
Mercurial or Bazaar repository as author-attributed, timestamped commits
and tags.
"""

__version__ = '0.1.0'
__author__ = 'VSS Migration Team'
__email__ = 'team@example.com'

from .cli import main

__all__ = ['main']
