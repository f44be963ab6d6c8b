"""Tests for shard planning and location resolution."""

import pytest

from redbloom.core.errors import InvalidParameterError
from redbloom.core.partition import (
    infer_shard_bits,
    plan_shards,
    resolve_locations,
    shard_key,
    validate_layout,
)
from redbloom.core.types import MAX_SHARD_BITS, ShardDescriptor


class TestPlanShards:
    @pytest.mark.parametrize(
        "name,m,count,last_key,last_max",
        [
            ("bf1", 1024, 1, "bf1:0", 1024),
            ("bf2", MAX_SHARD_BITS * 5 + 1024, 6, "bf2:5", 1024),
        ],
    )
    def test_layout(self, name, m, count, last_key, last_max):
        shards = plan_shards(name, m)
        assert len(shards) == count
        assert shards[-1].key == last_key
        assert shards[-1].max_offset == last_max

    def test_full_shards_span_capacity(self):
        shards = plan_shards("bf", MAX_SHARD_BITS * 2 + 7)
        assert [s.key for s in shards] == ["bf:0", "bf:1", "bf:2"]
        assert shards[0].max_offset == MAX_SHARD_BITS - 1
        assert shards[1].max_offset == MAX_SHARD_BITS - 1
        assert shards[2].max_offset == 7

    def test_small_shards(self):
        shards = plan_shards("small", 2500, shard_bits=1000)
        assert [(s.key, s.max_offset) for s in shards] == [
            ("small:0", 999),
            ("small:1", 999),
            ("small:2", 500),
        ]

    def test_exact_multiple_adds_trailing_shard(self):
        shards = plan_shards("bf", 2000, shard_bits=1000)
        assert len(shards) == 3
        assert shards[-1].max_offset == 0

    def test_capacity_covers_every_position(self):
        m, c = 2500, 1000
        shards = plan_shards("bf", m, shard_bits=c)
        capacity = sum(s.max_offset + 1 for s in shards)
        assert capacity >= m

    @pytest.mark.parametrize("shard_bits", [0, -1, MAX_SHARD_BITS + 1, 1.5])
    def test_rejects_bad_shard_bits(self, shard_bits):
        with pytest.raises(InvalidParameterError) as exc:
            plan_shards("bf", 100, shard_bits=shard_bits)
        assert exc.value.field == "shard_bits"

    def test_rejects_empty_filter(self):
        with pytest.raises(InvalidParameterError):
            plan_shards("bf", 0)

    def test_shard_key(self):
        assert shard_key("users", 3) == "users:3"


class TestLayoutRecovery:
    def test_infer_from_multi_shard_layout(self):
        shards = plan_shards("bf", 2500, shard_bits=1000)
        assert infer_shard_bits(shards) == 1000

    def test_infer_single_shard_uses_widest(self):
        shards = plan_shards("bf", 2500, shard_bits=10_000)
        assert infer_shard_bits(shards) == MAX_SHARD_BITS
        # Any C above m gives the same layout
        validate_layout("bf", 2500, shards, MAX_SHARD_BITS)

    def test_validate_accepts_planned_layout(self):
        shards = plan_shards("bf", 2500, shard_bits=1000)
        validate_layout("bf", 2500, shards, 1000)

    def test_validate_rejects_wrong_count(self):
        shards = plan_shards("bf", 2500, shard_bits=1000)
        with pytest.raises(ValueError, match="expected 3 shards"):
            validate_layout("bf", 2500, shards[:2], 1000)

    def test_validate_rejects_wrong_bound(self):
        shards = plan_shards("bf", 2500, shard_bits=1000)
        shards[-1] = ShardDescriptor(key="bf:2", max_offset=499)
        with pytest.raises(ValueError, match="shard mismatch"):
            validate_layout("bf", 2500, shards, 1000)

    def test_validate_rejects_foreign_keys(self):
        shards = plan_shards("other", 2500, shard_bits=1000)
        with pytest.raises(ValueError):
            validate_layout("bf", 2500, shards, 1000)


class TestResolveLocations:
    def test_single_shard(self):
        shards = plan_shards("bf", 1024)
        locs = resolve_locations([0, 5, 1023], shards, MAX_SHARD_BITS)
        assert [(loc.shard_key, loc.offset) for loc in locs] == [
            ("bf:0", 0),
            ("bf:0", 5),
            ("bf:0", 1023),
        ]

    def test_positions_split_across_shards(self):
        shards = plan_shards("bf", 2500, shard_bits=1000)
        locs = resolve_locations([0, 999, 1000, 2499], shards, 1000)
        assert [(loc.shard_key, loc.offset) for loc in locs] == [
            ("bf:0", 0),
            ("bf:0", 999),
            ("bf:1", 0),
            ("bf:2", 499),
        ]

    def test_large_layout(self):
        m = MAX_SHARD_BITS * 5 + 1024
        shards = plan_shards("bf", m)
        (loc,) = resolve_locations([MAX_SHARD_BITS * 5 + 3], shards, MAX_SHARD_BITS)
        assert loc.shard_key == "bf:5"
        assert loc.offset == 3

    @pytest.mark.parametrize("pos", [-1, 3000, 2501])
    def test_out_of_range(self, pos):
        shards = plan_shards("bf", 2500, shard_bits=1000)
        with pytest.raises(ValueError, match="outside the shard layout"):
            resolve_locations([pos], shards, 1000)
