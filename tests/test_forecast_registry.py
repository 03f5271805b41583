"""
tests/test_forecast_registry.py

Encrypted forecast submission and input proof verification.
"""

import pytest

from confidentialcast.capability.base import ExternalValue
from confidentialcast.core.exceptions import (
    PredictionExists,
    StakeRequired,
    StakeTooLarge,
    VerificationError,
)
from confidentialcast.core.models import UINT64_MAX, ZERO_HANDLE, NotificationType
from confidentialcast.core.units import parse_units

from conftest import ABOVE, ALICE, BELOW, BOB, START_PERIOD, encrypt, submit

STAKE = parse_units("0.05")


class TestSubmit:

    def test_submit_stores_public_metadata(self, runtime, clock):
        result = submit(runtime, ALICE, 63000, ABOVE, STAKE)

        assert runtime.get_metadata(ALICE, START_PERIOD) == (STAKE, clock.now(), False)
        assert result.notification.name == NotificationType.FORECAST_SUBMITTED
        assert result.notification["account"] == ALICE
        assert result.notification["period"] == START_PERIOD
        assert result.notification["stake"] == str(STAKE)

    def test_submit_stores_handles_not_plaintext(self, runtime):
        enc = encrypt(runtime, ALICE, 63000, ABOVE)
        runtime.submit_forecast(ALICE, enc[0], enc[1], enc.proof, STAKE)

        target, direction = runtime.get_encrypted(ALICE, START_PERIOD)
        assert (target, direction) == (enc[0].handle, enc[1].handle)
        assert target != ZERO_HANDLE

    def test_submitter_can_decrypt_own_forecast(self, runtime):
        submit(runtime, ALICE, 63000, BELOW, STAKE)
        target, direction = runtime.get_encrypted(ALICE, START_PERIOD)

        assert runtime.capability.user_decrypt(target, ALICE) == 63000
        assert runtime.capability.user_decrypt(direction, ALICE) == BELOW

    def test_submission_does_not_need_reference(self, runtime):
        submit(runtime, ALICE, 63000, ABOVE, STAKE)
        assert not runtime.get_reference(START_PERIOD).exists

    def test_zero_stake_rejected(self, runtime):
        with pytest.raises(StakeRequired):
            submit(runtime, ALICE, 63000, ABOVE, 0)
        assert runtime.get_metadata(ALICE, START_PERIOD) == (0, 0, False)

    def test_stake_above_uint64_rejected(self, runtime):
        with pytest.raises(StakeTooLarge):
            submit(runtime, ALICE, 63000, ABOVE, UINT64_MAX + 1)

    def test_duplicate_submission_rejected(self, runtime):
        submit(runtime, ALICE, 63000, ABOVE, STAKE)
        with pytest.raises(PredictionExists):
            submit(runtime, ALICE, 70000, BELOW, 2 * STAKE)

        stake, _, _ = runtime.get_metadata(ALICE, START_PERIOD)
        assert stake == STAKE

    def test_same_account_next_period_accepted(self, runtime, next_period):
        submit(runtime, ALICE, 63000, ABOVE, STAKE)
        next_period()
        submit(runtime, ALICE, 64000, BELOW, STAKE)

        assert runtime.get_metadata(ALICE, START_PERIOD + 1)[0] == STAKE

    def test_accounts_are_independent(self, runtime):
        submit(runtime, ALICE, 63000, ABOVE, STAKE)
        submit(runtime, BOB, 63000, ABOVE, STAKE)
        assert runtime.get_metadata(BOB, START_PERIOD)[0] == STAKE

    def test_absent_forecast_reads_as_zeros(self, runtime):
        assert runtime.get_metadata(ALICE, 7) == (0, 0, False)
        assert runtime.get_encrypted(ALICE, 7) == (ZERO_HANDLE, ZERO_HANDLE)


class TestInputVerification:

    def test_proof_bound_to_other_account_rejected(self, runtime):
        enc = encrypt(runtime, BOB, 63000, ABOVE)
        with pytest.raises(VerificationError):
            runtime.submit_forecast(ALICE, enc[0], enc[1], enc.proof, STAKE)
        assert runtime.get_metadata(ALICE, START_PERIOD) == (0, 0, False)

    def test_proof_bound_to_other_engine_rejected(self, runtime):
        enc = (
            runtime.capability
            .encrypt_input("0x9999999999999999999999999999999999999999", ALICE)
            .add64(63000)
            .add8(ABOVE)
            .encrypt()
        )
        with pytest.raises(VerificationError):
            runtime.submit_forecast(ALICE, enc[0], enc[1], enc.proof, STAKE)

    def test_handle_from_another_bundle_rejected(self, runtime):
        first  = encrypt(runtime, ALICE, 63000, ABOVE)
        second = encrypt(runtime, ALICE, 64000, BELOW)
        with pytest.raises(VerificationError):
            runtime.submit_forecast(ALICE, first[0], second[1], first.proof, STAKE)

    def test_swapped_types_rejected(self, runtime):
        enc = encrypt(runtime, ALICE, 63000, ABOVE)
        with pytest.raises(VerificationError):
            runtime.submit_forecast(ALICE, enc[1], enc[0], enc.proof, STAKE)

    def test_tampered_ciphertext_rejected(self, runtime):
        enc    = encrypt(runtime, ALICE, 63000, ABOVE)
        forged = ExternalValue(handle=enc[0].handle, ciphertext=enc[1].ciphertext)
        with pytest.raises(VerificationError):
            runtime.submit_forecast(ALICE, forged, enc[1], enc.proof, STAKE)

    def test_garbage_proof_rejected(self, runtime):
        enc = encrypt(runtime, ALICE, 63000, ABOVE)
        with pytest.raises(VerificationError):
            runtime.submit_forecast(ALICE, enc[0], enc[1], "not-a-proof", STAKE)

    def test_rejected_submission_not_journaled(self, runtime):
        before = len(runtime.journal)
        enc    = encrypt(runtime, BOB, 63000, ABOVE)
        with pytest.raises(VerificationError):
            runtime.submit_forecast(ALICE, enc[0], enc[1], enc.proof, STAKE)
        assert len(runtime.journal) == before
