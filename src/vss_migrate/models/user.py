"""User mapping models."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..exceptions import ConfigurationError, UnknownAuthorError


class UserIdentity(BaseModel):
    """Identity of an author on the target repository."""

    name: str = Field(..., description='Author name')
    email: str = Field(default='', description='Author e-mail, may be empty')

    class Config:
        """Pydantic configuration."""

        frozen = True

    @property
    def signature(self) -> str:
        """Author string in `name <email>` form."""
        return f'{self.name} <{self.email}>'


class UserMap(BaseModel):
    """Mapping from source user names to target identities."""

    entries: Dict[str, UserIdentity] = Field(
        default_factory=dict, description='Source user name -> identity'
    )

    class Config:
        """Pydantic configuration."""

        frozen = True

    @classmethod
    def build(
        cls,
        authors: Iterable[str],
        base: Optional[Dict[str, UserIdentity]] = None,
        email_domain: Optional[str] = None,
    ) -> 'UserMap':
        """Complete a user map with every source author.

        Authors missing from ``base`` keep their name; their e-mail is
        ``name@email_domain`` when a domain is given and empty otherwise.

        Args:
            authors: Source user names seen in the history
            base: Entries loaded from a user map file
            email_domain: Domain used to synthesize e-mails

        Returns:
            Completed user map
        """
        entries = dict(base or {})
        for author in authors:
            if author in entries:
                continue
            email = f'{author}@{email_domain}' if email_domain else ''
            entries[author] = UserIdentity(name=author, email=email)
        return cls(entries=entries)

    @staticmethod
    def load_entries(path: str) -> Dict[str, UserIdentity]:
        """Load user map entries from a JSON or YAML file.

        The file maps each source user name to ``[name, email]``::

            {"jdoe": ["John Doe", "john.doe@example.com"]}

        Keys are lower-cased because the source reports user names in
        lower case.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        map_file = Path(path)
        if not map_file.is_file():
            raise ConfigurationError(f'User map file does not exist: {path}')

        try:
            with open(map_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f'Malformed user map file: {path}', str(e))

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f'User map must be a mapping: {path}')

        entries = {}
        for source_name, value in data.items():
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, (list, tuple)) or not 1 <= len(value) <= 2:
                raise ConfigurationError(
                    f'User map entry for {source_name!r} must be [name, email]'
                )
            try:
                entries[str(source_name).lower()] = UserIdentity(
                    name=str(value[0]), email=str(value[1]) if len(value) > 1 else ''
                )
            except ValidationError as e:
                raise ConfigurationError(
                    f'Invalid user map entry for {source_name!r}', str(e)
                )
        return entries

    def resolve(self, author: str) -> UserIdentity:
        """Look up the identity registered for a source author.

        Raises:
            UnknownAuthorError: If the author was never registered
        """
        try:
            return self.entries[author]
        except KeyError:
            raise UnknownAuthorError(author)

    def authors(self) -> List[str]:
        return list(self.entries)

    def to_json_dict(self) -> Dict[str, List[str]]:
        """Render in user map file format."""
        return {
            source: [identity.name, identity.email]
            for source, identity in self.entries.items()
        }

    def __contains__(self, author: str) -> bool:
        return author in self.entries

    def __len__(self) -> int:
        return len(self.entries)
