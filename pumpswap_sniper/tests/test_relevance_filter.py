"""
Unit tests for the Transaction Relevance Filter
"""

import copy

from pumpswap_sniper.core.models import ActivityRecord
from pumpswap_sniper.core.relevance_filter import TransactionRelevanceFilter
from pumpswap_sniper.constants import PUMPSWAP_PROGRAM
from pumpswap_sniper.tests.conftest import MINT, swap_detail

OTHER_PROGRAM = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"


def make_filter(**kwargs):
    params = dict(
        token_mint=MINT,
        min_price_impact=1.0,
        max_price_impact=10.0,
        required_programs=[str(PUMPSWAP_PROGRAM)],
    )
    params.update(kwargs)
    return TransactionRelevanceFilter(**params)


def record(detail, err=None):
    return ActivityRecord(signature="sig", err=err, detail=detail)


class TestBasicChecks:

    def test_swap_inside_band_is_relevant(self):
        assert make_filter().is_relevant(record(swap_detail()))

    def test_missing_detail_is_not_relevant(self):
        assert not make_filter().is_relevant(record(None))

    def test_failed_signature_is_not_relevant(self):
        assert not make_filter().is_relevant(record(swap_detail(), err={"InstructionError": [0, "x"]}))

    def test_failed_transaction_meta_is_not_relevant(self):
        assert not make_filter().is_relevant(record(swap_detail(err={"InstructionError": [0, "x"]})))

    def test_predicate_does_not_mutate_record(self):
        detail = swap_detail()
        snapshot = copy.deepcopy(detail)
        make_filter().is_relevant(record(detail))
        assert detail == snapshot


class TestProgramInvolvement:

    def test_other_program_is_not_relevant(self):
        assert not make_filter().is_relevant(record(swap_detail(program=OTHER_PROGRAM)))

    def test_program_found_in_logs_only(self):
        detail = swap_detail(program=OTHER_PROGRAM)
        detail["meta"]["logMessages"].append(f"Program {PUMPSWAP_PROGRAM} invoke [2]")
        assert make_filter().is_relevant(record(detail))

    def test_plain_string_account_keys(self):
        detail = swap_detail()
        detail["meta"]["logMessages"] = []
        detail["transaction"]["message"]["accountKeys"] = [str(PUMPSWAP_PROGRAM)]
        detail["transaction"]["message"]["instructions"] = []
        assert make_filter().is_relevant(record(detail))

    def test_no_required_programs_skips_check(self):
        flt = make_filter(required_programs=[])
        assert flt.is_relevant(record(swap_detail(program=OTHER_PROGRAM)))


class TestPriceImpactBand:

    def test_impact_estimate_uses_pool_vault(self):
        flt = make_filter()
        assert flt.estimate_price_impact(swap_detail(pre=2_000_000, post=1_900_000)) == 5.0

    def test_below_band(self):
        assert not make_filter().is_relevant(record(swap_detail(pre=1_000_000, post=1_005_000)))

    def test_above_band(self):
        assert not make_filter().is_relevant(record(swap_detail(pre=1_000_000, post=1_200_000)))

    def test_band_edges_inclusive(self):
        flt = make_filter()
        assert flt.is_relevant(record(swap_detail(pre=1_000_000, post=1_010_000)))
        assert flt.is_relevant(record(swap_detail(pre=1_000_000, post=1_100_000)))

    def test_unknown_impact_is_not_relevant(self):
        detail = swap_detail(mint="So11111111111111111111111111111111111111112")
        assert not make_filter().is_relevant(record(detail))

    def test_band_disabled_when_max_is_zero(self):
        flt = make_filter(min_price_impact=0.0, max_price_impact=0.0)
        assert flt.is_relevant(record(swap_detail(pre=1_000_000, post=5_000_000)))

    def test_from_config(self, make_config):
        flt = TransactionRelevanceFilter.from_config(make_config(min_price_impact=2, max_price_impact=3))
        assert flt.token_mint == MINT
        assert (flt.min_price_impact, flt.max_price_impact) == (2, 3)
        assert str(PUMPSWAP_PROGRAM) in flt.required_programs
