"""
Tests for breadth-first propagation of registrations.
"""

import numpy as np
import pytest

from beacon_registration.errors import DisconnectedGraphError
from beacon_registration.preprocessing import generate_scanner_chain
from beacon_registration.registration import (
    PairwiseRegistration,
    RegistrationGraph,
    Scanner,
    ScannerFrameMap,
)
from beacon_registration.utils.transforms import identity_transform, translation_matrix

from conftest import expected_transform


def _literal_scanners(offset):
    """12 collinear beacons plus one extra each; scanner 1 sees them rotated
    90 degrees about x and shifted by ``offset``."""
    line = np.array([[i, 0, 0] for i in range(12)], dtype=np.int64)
    rot_x90 = np.array([[1, 0, 0], [0, 0, -1], [0, 1, 0]], dtype=np.int64)

    scanner0 = Scanner(index=0, beacons=np.vstack([line, [[900, 900, 900]]]))
    scanner1 = Scanner(
        index=1,
        beacons=np.vstack([line @ rot_x90.T + np.asarray(offset), [[-900, -900, -900]]]),
    )
    return [scanner0, scanner1]


class TestScannerFrameMap:
    """Write-once transform map."""

    def test_reference_is_identity(self):
        frame_map = ScannerFrameMap(reference=2)
        assert list(frame_map) == [2]
        np.testing.assert_array_equal(frame_map[2], identity_transform())

    def test_write_once(self):
        frame_map = ScannerFrameMap()
        frame_map.assign(1, translation_matrix([1, 2, 3]))
        with pytest.raises(ValueError, match="already"):
            frame_map.assign(1, identity_transform())

    def test_absent_entry(self):
        frame_map = ScannerFrameMap()
        assert 3 not in frame_map
        with pytest.raises(KeyError):
            frame_map[3]

    def test_entries_are_read_only(self):
        frame_map = ScannerFrameMap()
        with pytest.raises(ValueError):
            frame_map[0][0, 3] = 7

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError, match="4x4"):
            ScannerFrameMap().assign(1, np.eye(3, dtype=np.int64))


class TestRegistrationGraph:
    """Test suite for RegistrationGraph.resolve."""

    def test_single_scanner(self, consistent_pair):
        scanner_a, _ = consistent_pair
        frame_map = RegistrationGraph([scanner_a], PairwiseRegistration()).resolve()
        assert len(frame_map) == 1
        np.testing.assert_array_equal(frame_map[0], identity_transform())

    def test_two_scanners(self, consistent_pair):
        graph = RegistrationGraph(list(consistent_pair), PairwiseRegistration())
        frame_map = graph.resolve()

        np.testing.assert_array_equal(frame_map[1], expected_transform())
        assert graph.attempts == 1
        assert [(e.anchor, e.target, e.overlap) for e in graph.edges] == [(0, 1, 12)]

    def test_chain_requires_transitive_propagation(self):
        """Scanners far from the reference are reached through intermediate anchors."""
        field = generate_scanner_chain(4, seed=3)
        graph = RegistrationGraph(field.scanners, PairwiseRegistration())
        frame_map = graph.resolve()

        assert sorted(frame_map) == [0, 1, 2, 3]
        for i in range(4):
            np.testing.assert_array_equal(frame_map[i], field.relative_transform(0, i))

        # Scanner 3 can only be registered from scanner 2
        anchors = {e.target: e.anchor for e in graph.edges}
        assert anchors == {1: 0, 2: 1, 3: 2}

    def test_non_zero_reference(self):
        field = generate_scanner_chain(3, seed=5)
        frame_map = RegistrationGraph(field.scanners, PairwiseRegistration(), reference=2).resolve()
        for i in range(3):
            np.testing.assert_array_equal(frame_map[i], field.relative_transform(2, i))

    def test_disconnected_scanners_raise(self):
        """No silent partial result when a scanner shares nothing with the others."""
        rng = np.random.default_rng(11)
        scanners = [
            Scanner(index=0, beacons=rng.integers(-1000, 1001, size=(20, 3))),
            Scanner(index=1, beacons=rng.integers(-1000, 1001, size=(20, 3))),
        ]
        graph = RegistrationGraph(scanners, PairwiseRegistration())

        with pytest.raises(DisconnectedGraphError) as excinfo:
            graph.resolve()
        assert excinfo.value.unregistered == [1]
        assert graph.unregistered == [1]

    def test_partially_connected_reports_only_missing(self):
        field = generate_scanner_chain(3, seed=8)
        rng = np.random.default_rng(12)
        stray = Scanner(index=3, beacons=rng.integers(-1000, 1001, size=(20, 3)))

        with pytest.raises(DisconnectedGraphError) as excinfo:
            RegistrationGraph(field.scanners + [stray], PairwiseRegistration()).resolve()
        assert excinfo.value.unregistered == [3]

    def test_extras_inside_each_others_cube_contradict(self):
        """With scanner 1 only (5, 5, 5) away, each extra beacon lies inside the
        other scanner's cube with no counterpart, so every candidate is rejected."""
        scanners = _literal_scanners((5, 5, 5))
        with pytest.raises(DisconnectedGraphError) as excinfo:
            RegistrationGraph(scanners, PairwiseRegistration()).resolve()
        assert excinfo.value.unregistered == [1]

    def test_invalid_reference(self, consistent_pair):
        with pytest.raises(ValueError, match="out of range"):
            RegistrationGraph(list(consistent_pair), PairwiseRegistration(), reference=5)

    def test_no_scanners(self):
        with pytest.raises(ValueError):
            RegistrationGraph([], PairwiseRegistration())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
