"""Tests for data models."""

import json
import pytest
import tempfile
import os
from datetime import datetime, timezone

from pydantic import ValidationError

from vss_migrate.exceptions import ConfigurationError, UnknownAuthorError
from vss_migrate.models.branch import (
    BranchModel,
    BranchTopology,
    DEVELOP_BRANCH,
    MASTER_BRANCH,
    PRODUCT_BRANCH,
)
from vss_migrate.models.changeset import Changeset
from vss_migrate.models.event import RawVersionRecord, TargetAction, VersionEvent
from vss_migrate.models.user import UserIdentity, UserMap


class TestUserMap:
    """Test user map construction and lookup."""

    def test_build_with_domain(self):
        """Test unmapped authors get a synthesized e-mail."""
        user_map = UserMap.build(['alice', 'bob'], email_domain='example.com')

        assert user_map.resolve('alice').signature == 'alice <alice@example.com>'
        assert len(user_map) == 2

    def test_build_without_domain(self):
        """Test unmapped authors get an empty e-mail without a domain."""
        user_map = UserMap.build(['alice'])

        identity = user_map.resolve('alice')
        assert identity.name == 'alice'
        assert identity.email == ''
        assert identity.signature == 'alice <>'

    def test_build_keeps_base_entries(self):
        """Test file entries win over synthesized ones."""
        base = {'alice': UserIdentity(name='Alice A', email='aa@corp.com')}
        user_map = UserMap.build(['alice', 'carol'], base, 'example.com')

        assert user_map.resolve('alice').signature == 'Alice A <aa@corp.com>'
        assert 'carol' in user_map
        assert user_map.authors() == ['alice', 'carol']

    def test_resolve_unknown(self):
        """Test unknown authors raise."""
        user_map = UserMap.build(['alice'])

        with pytest.raises(UnknownAuthorError):
            user_map.resolve('bob')

    def test_to_json_dict(self):
        """Test rendering in user map file format."""
        user_map = UserMap.build(['alice'], email_domain='example.com')

        assert user_map.to_json_dict() == {'alice': ['alice', 'alice@example.com']}

    def test_load_entries_json(self):
        """Test loading a JSON user map file."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.json', delete=False
        ) as f:
            json.dump({'JDoe': ['John Doe', 'john@example.com']}, f)
            map_path = f.name

        try:
            entries = UserMap.load_entries(map_path)

            assert list(entries) == ['jdoe']
            assert entries['jdoe'].name == 'John Doe'
            assert entries['jdoe'].email == 'john@example.com'
        finally:
            os.unlink(map_path)

    def test_load_entries_yaml(self):
        """Test loading a YAML user map file."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.yaml', delete=False
        ) as f:
            f.write('jdoe: [John Doe, john@example.com]\nadmin: Administrator\n')
            map_path = f.name

        try:
            entries = UserMap.load_entries(map_path)

            assert entries['jdoe'].signature == 'John Doe <john@example.com>'
            assert entries['admin'].signature == 'Administrator <>'
        finally:
            os.unlink(map_path)

    def test_load_entries_missing_file(self):
        """Test a missing file is a configuration error."""
        with pytest.raises(ConfigurationError):
            UserMap.load_entries('/nonexistent/users.json')

    def test_load_entries_not_a_mapping(self):
        """Test a list document is rejected."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.json', delete=False
        ) as f:
            f.write('["jdoe"]')
            map_path = f.name

        try:
            with pytest.raises(ConfigurationError):
                UserMap.load_entries(map_path)
        finally:
            os.unlink(map_path)

    def test_load_entries_bad_entry(self):
        """Test entries with too many fields are rejected."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.json', delete=False
        ) as f:
            json.dump({'jdoe': ['a', 'b', 'c']}, f)
            map_path = f.name

        try:
            with pytest.raises(ConfigurationError):
                UserMap.load_entries(map_path)
        finally:
            os.unlink(map_path)


class TestBranchTopology:
    """Test branch model resolution."""

    def test_single_branch(self):
        """Test model 0 uses master for everything."""
        topology = BranchTopology.from_model(0)

        assert topology.model == BranchModel.SINGLE
        assert topology.production_branch == MASTER_BRANCH
        assert topology.develop_branch == MASTER_BRANCH
        assert not topology.has_production_branch
        assert topology.secondary_branch is None

    def test_master_production(self):
        """Test model 1 commits to develop and tags master."""
        topology = BranchTopology.from_model(1)

        assert topology.model == BranchModel.MASTER_PRODUCTION

        assert topology.production_branch == MASTER_BRANCH
        assert topology.develop_branch == DEVELOP_BRANCH
        assert topology.has_production_branch
        assert topology.secondary_branch == DEVELOP_BRANCH

    def test_master_develop(self):
        """Test model 2 commits to master and tags product."""
        topology = BranchTopology.from_model(2)

        assert topology.model == BranchModel.MASTER_DEVELOP

        assert topology.production_branch == PRODUCT_BRANCH
        assert topology.develop_branch == MASTER_BRANCH
        assert topology.secondary_branch == PRODUCT_BRANCH

    def test_invalid_model(self):
        """Test unknown model numbers are rejected."""
        with pytest.raises(ValueError):
            BranchTopology.from_model(3)


class TestEventModels:
    """Test version event and changeset models."""

    def test_version_number_must_be_positive(self):
        """Test version numbers start at one."""
        with pytest.raises(ValidationError):
            RawVersionRecord(
                file_path='$/p/a.c',
                version_number=0,
                action_text='Created',
                author='alice',
                timestamp=datetime(2020, 1, 1),
            )

    def test_changeset_requires_events(self):
        """Test empty changesets are rejected."""
        with pytest.raises(ValidationError):
            Changeset(events=())

    def test_changeset_properties(self):
        """Test anchor and terminal action."""
        first = VersionEvent(
            file_path='$/p/a.c',
            version_number=1,
            author='Alice <a@x>',
            timestamp=datetime(2020, 1, 1, tzinfo=timezone.utc),
            action=TargetAction.ADD,
        )
        last = VersionEvent(
            file_path='$/p/b.c',
            version_number=2,
            author='Alice <a@x>',
            timestamp=datetime(2020, 1, 1, 0, 1, tzinfo=timezone.utc),
            action=TargetAction.TAG,
            tag='v1',
        )

        changeset = Changeset(events=(first, last))

        assert changeset.anchor.file_path == '$/p/a.c'
        assert changeset.last.file_path == '$/p/b.c'
        assert changeset.timestamp == first.timestamp
        assert changeset.author == 'Alice <a@x>'
        assert changeset.action == TargetAction.TAG
        assert len(changeset) == 2
        assert str(last) == '$/p/b.c@2'
