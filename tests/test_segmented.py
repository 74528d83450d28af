"""Tests for the segmented sieve."""

import json

import numpy as np
import pytest

from presieve.core.presieve import PreSieve
from presieve.core.segmented import SegmentedSieve, SieveConfig, decode_segment
from presieve.core.sieve import simple_sieve


def reference_primes(start: int, stop: int) -> np.ndarray:
    primes = simple_sieve(stop)
    return primes[primes >= start]


class TestSieveConfig:
    """Tests for SieveConfig."""

    def test_defaults(self):
        """Test default configuration."""
        config = SieveConfig()
        assert config.limit == 19
        assert config.segment_size == 32768
        assert config.workers == 1

    def test_invalid_segment_size(self):
        """Test invalid segment size raises error."""
        with pytest.raises(ValueError):
            SieveConfig(segment_size=0).validate()

    def test_invalid_workers(self):
        """Test invalid worker count raises error."""
        with pytest.raises(ValueError):
            SegmentedSieve(SieveConfig(workers=0))

    def test_non_integer_fields(self):
        """Test non-integer fields raise ValueError."""
        with pytest.raises(ValueError):
            SieveConfig(segment_size="big").validate()
        with pytest.raises(ValueError):
            SieveConfig(limit=7.5).validate()
        with pytest.raises(ValueError):
            SieveConfig(workers=True).validate()

    def test_from_dict_requires_mapping(self):
        """Test a non-dict config raises ValueError."""
        with pytest.raises(ValueError):
            SieveConfig.from_dict([1, 2])

    def test_dict_round_trip(self):
        """Test conversion to and from a dictionary ignores unknown keys."""
        config = SieveConfig(limit=13, segment_size=64, workers=2)
        data = config.to_dict()
        data["unused"] = True
        assert SieveConfig.from_dict(data) == config

    def test_from_json(self, tmp_path):
        """Test loading a JSON configuration file."""
        path = tmp_path / "sieve.json"
        path.write_text(json.dumps({"limit": 11, "segment_size": 100}))
        config = SieveConfig.from_json(path)
        assert config == SieveConfig(limit=11, segment_size=100, workers=1)


class TestDecodeSegment:
    """Tests for decode_segment."""

    def test_full_byte(self):
        """Test a full byte decodes to the 8 residues."""
        result = decode_segment(np.array([0xFF], dtype=np.uint8), 60)
        np.testing.assert_array_equal(result, [61, 67, 71, 73, 77, 79, 83, 89])

    def test_presieved_byte(self):
        """Test a pre-sieved first byte drops 7."""
        presieve = PreSieve(7)
        result = decode_segment(presieve.wheel[:1], 0)
        np.testing.assert_array_equal(result, [1, 11, 13, 17, 19, 23, 29])

    def test_bytearray(self):
        """Test decoding a bytearray."""
        result = decode_segment(bytearray([0x01, 0x80]), 0)
        np.testing.assert_array_equal(result, [1, 59])


class TestSegmentedSieve:
    """Tests for SegmentedSieve prime generation."""

    def test_primes_up_to_100(self):
        """Test primes up to 100."""
        primes = SegmentedSieve().primes(0, 100)
        assert len(primes) == 25
        assert primes[0] == 2
        assert primes[-1] == 97

    @pytest.mark.parametrize("limit", [5, 7, 11, 13, 17, 19])
    def test_matches_reference(self, limit):
        """Test results for each pre-sieve limit against a plain sieve."""
        sieve = SegmentedSieve(SieveConfig(limit=limit, segment_size=50))
        np.testing.assert_array_equal(sieve.primes(0, 20000), reference_primes(0, 20000))

    def test_small_primes_in_range(self):
        """Test pre-sieved primes are still reported."""
        sieve = SegmentedSieve(SieveConfig(limit=23))
        np.testing.assert_array_equal(sieve.primes(0, 30), [2, 3, 5, 7, 11, 13, 17, 19, 23, 29])
        np.testing.assert_array_equal(sieve.primes(12, 24), [13, 17, 19, 23])

    def test_unaligned_range(self):
        """Test a range starting and stopping mid-segment."""
        sieve = SegmentedSieve(SieveConfig(limit=13, segment_size=7))
        np.testing.assert_array_equal(sieve.primes(1001, 5003), reference_primes(1001, 5003))

    def test_offset_range(self):
        """Test a range far from zero."""
        sieve = SegmentedSieve(SieveConfig(limit=17, segment_size=1000))
        start, stop = 10**9, 10**9 + 100000
        primes = sieve.primes(start, stop)
        assert primes[0] == 1000000007
        assert np.all((primes >= start) & (primes <= stop))
        # Every result has no factor below sqrt(stop)
        for p in simple_sieve(int(np.sqrt(stop)) + 1)[:200]:
            assert not np.any(primes % p == 0)

    def test_counts(self):
        """Test known prime counts."""
        sieve = SegmentedSieve(SieveConfig(limit=19, segment_size=1024))
        assert sieve.count(0, 1000) == 168
        assert sieve.count(0, 10**6) == 78498
        assert sieve.count(2, 2) == 1
        assert sieve.count(0, 1) == 0

    def test_workers(self):
        """Test threaded sieving gives the same result."""
        single = SegmentedSieve(SieveConfig(limit=13, segment_size=64))
        threaded = SegmentedSieve(SieveConfig(limit=13, segment_size=64, workers=4))
        np.testing.assert_array_equal(threaded.primes(0, 200000), single.primes(0, 200000))

    def test_invalid_range(self):
        """Test invalid ranges raise error."""
        sieve = SegmentedSieve(SieveConfig(limit=7))
        with pytest.raises(ValueError):
            sieve.primes(10, 5)
        with pytest.raises(ValueError):
            sieve.primes(-1, 5)

    def test_sieve_segment(self):
        """Test a single segment against a plain sieve."""
        sieve = SegmentedSieve(SieveConfig(limit=11))
        base = simple_sieve(100)
        segment = sieve.sieve_segment(3000, 200, base)
        found = decode_segment(segment, 3000)
        np.testing.assert_array_equal(found, reference_primes(3000, 8999))
