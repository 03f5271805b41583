"""
tests/test_access_control.py

Owner lifecycle: deploy, owner-only gate, ownership transfer.
"""

import pytest

from confidentialcast.core.exceptions import AuthorizationError, InvalidOwner, OnlyOwner
from confidentialcast.core.models import NULL_ACCOUNT, NotificationType
from confidentialcast.core.time import ManualClock
from confidentialcast.runtime.context import in_memory_runtime

from conftest import ALICE, BOB, OWNER


class TestDeploy:

    def test_deployer_becomes_owner(self, runtime):
        assert runtime.owner == OWNER

    def test_deploy_is_first_journal_entry(self, runtime):
        entry = runtime.journal.entries[0]
        assert entry.command == "deploy"
        assert entry.caller == OWNER
        assert entry.notification["name"] == NotificationType.DEPLOYED

    def test_second_deploy_rejected(self, runtime):
        with pytest.raises(OnlyOwner):
            runtime.deploy(ALICE)
        assert runtime.owner == OWNER

    def test_null_deployer_rejected(self):
        with pytest.raises(InvalidOwner):
            in_memory_runtime(owner=NULL_ACCOUNT, clock=ManualClock(1000))


class TestOwnerGate:

    def test_non_owner_cannot_record(self, runtime):
        with pytest.raises(OnlyOwner):
            runtime.record_reference(ALICE, 63500)

    def test_owner_check_ignores_case(self, clock):
        mixed   = "0xAbCdEf0000000000000000000000000000000001"
        runtime = in_memory_runtime(owner=mixed, clock=clock)
        result  = runtime.record_reference(mixed.lower(), 63500)
        assert result.notification.name == NotificationType.REFERENCE_RECORDED

    def test_only_owner_is_an_authorization_error(self, runtime):
        with pytest.raises(AuthorizationError):
            runtime.transfer_ownership(BOB, BOB)


class TestTransferOwnership:

    def test_transfer_moves_owner(self, runtime):
        result = runtime.transfer_ownership(OWNER, ALICE)

        assert runtime.owner == ALICE
        assert result.notification.name == NotificationType.OWNERSHIP_TRANSFERRED
        assert result.notification["previous_owner"] == OWNER
        assert result.notification["new_owner"] == ALICE

    def test_previous_owner_loses_rights(self, runtime):
        runtime.transfer_ownership(OWNER, ALICE)

        with pytest.raises(OnlyOwner):
            runtime.record_reference(OWNER, 63500)
        runtime.record_reference(ALICE, 63500)

    def test_transfer_to_null_rejected(self, runtime):
        with pytest.raises(InvalidOwner):
            runtime.transfer_ownership(OWNER, NULL_ACCOUNT)
        assert runtime.owner == OWNER

    def test_non_owner_cannot_transfer(self, runtime):
        with pytest.raises(OnlyOwner):
            runtime.transfer_ownership(ALICE, ALICE)
        assert runtime.owner == OWNER

    def test_rejected_transfer_not_journaled(self, runtime):
        before = len(runtime.journal)
        with pytest.raises(OnlyOwner):
            runtime.transfer_ownership(ALICE, BOB)
        assert len(runtime.journal) == before
