"""
Unit tests for ad_trace_analyzer.processors.timing_simulator module.
"""
import pytest
from ad_trace_analyzer.core.types import AnalysisConfig, RequestNode
from ad_trace_analyzer.processors.graph_builder import DependencyGraphBuilder
from ad_trace_analyzer.processors.record_normalizer import RecordNormalizer
from ad_trace_analyzer.processors.timing_simulator import TimingSimulator


def simulate(records, config=None):
    nodes, _, _ = RecordNormalizer().normalize(records, [])
    graph = DependencyGraphBuilder(config).build_graph(nodes)
    return graph, TimingSimulator(config).simulate(graph)


class TestModeledDuration:
    """Tests for the per-request network model."""

    def test_transfer_size_uses_model(self):
        config = AnalysisConfig(rtt_ms=100, throughput_kbps=8)
        node = RequestNode("A", "https://example.com/a", 0, 999, transfer_size=50)
        # 8 kbps is one byte per millisecond
        assert TimingSimulator(config).modeled_duration(node) == 150

    def test_unknown_size_keeps_captured_duration(self):
        node = RequestNode("A", "https://example.com/a", 10, 250)
        assert TimingSimulator().modeled_duration(node) == 240

    def test_captured_durations_mode(self):
        config = AnalysisConfig(use_captured_durations=True)
        node = RequestNode("A", "https://example.com/a", 0, 80, transfer_size=10_000)
        assert TimingSimulator(config).modeled_duration(node) == 80


class TestSimulate:
    """Tests for the scheduling pass."""

    def test_same_input_same_output(self, chain_requests):
        _, first = simulate(chain_requests)
        _, second = simulate(chain_requests)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_chain_runs_back_to_back(self, chain_requests):
        _, timing = simulate(chain_requests)

        assert (timing["A"].start, timing["A"].end) == (0, 100)
        assert (timing["B"].start, timing["B"].end) == (100, 300)
        assert (timing["C"].start, timing["C"].end) == (300, 600)
        assert timing.total_duration == 600

    def test_starts_after_every_dependency(self, make_request):
        records = [
            make_request("A", 0, 100),
            make_request("B", 0, 250),
            make_request("C", 300, 310, initiator="A", initiatorRequestId="B"),
        ]
        graph, timing = simulate(records)

        for dep, node_id in graph.edges():
            assert timing[node_id].start >= timing[dep].end
        assert timing["C"].start == 250

    def test_independent_requests_overlap(self, make_request):
        records = [make_request("P", 0, 100), make_request("Q", 5, 100)]
        _, timing = simulate(records, AnalysisConfig(max_concurrent_requests=2))

        assert timing["P"].start < timing["Q"].end
        assert timing["Q"].start < timing["P"].end

    def test_single_slot_serializes(self, make_request):
        records = [make_request("P", 0, 100), make_request("Q", 0, 100)]
        _, timing = simulate(records, AnalysisConfig(max_concurrent_requests=1))

        assert timing["P"].start == 0
        assert timing["Q"].start == 100

    def test_root_request_starts_when_slot_is_free(self, make_request):
        """Test that a request with only a frame root dependency starts at time zero."""
        _, timing = simulate([make_request("A", 5000, 5100)])

        assert timing["frame:main"].start == 0
        assert timing["frame:main"].duration == 0
        assert timing["A"].start == 0
        assert timing.model["origin_ms"] == 5000

    def test_model_recorded(self, chain_requests):
        config = AnalysisConfig(max_concurrent_requests=3, rtt_ms=40)
        _, timing = simulate(chain_requests, config)
        assert timing.model["max_concurrent_requests"] == 3
        assert timing.model["rtt_ms"] == 40

    def test_empty_graph(self):
        _, timing = simulate([])
        assert len(timing) == 0
        assert timing.total_duration == 0.0


class TestMergeTimeIntervals:
    """Tests for the merge_time_intervals static method."""

    def test_non_overlapping_intervals(self):
        intervals = [(100, 200), (300, 400), (500, 600)]
        merged = TimingSimulator.merge_time_intervals(intervals)
        assert merged == [(100, 200), (300, 400), (500, 600)]

    def test_fully_overlapping_intervals(self):
        intervals = [(100, 500), (150, 300), (200, 400)]
        assert TimingSimulator.merge_time_intervals(intervals) == [(100, 500)]

    def test_adjacent_intervals(self):
        """Test that touching intervals merge."""
        intervals = [(100, 200), (200, 300)]
        assert TimingSimulator.merge_time_intervals(intervals) == [(100, 300)]

    def test_zero_length_intervals_are_ignored(self):
        assert TimingSimulator.merge_time_intervals([(0, 0), (10, 10)]) == []

    def test_empty_intervals(self):
        assert TimingSimulator.merge_time_intervals([]) == []


class TestCalculateWallClock:
    """Tests for calculate_wall_clock_ms."""

    def test_parallel_work_counted_once(self):
        intervals = [(0, 100), (50, 150), (300, 400)]
        assert TimingSimulator.calculate_wall_clock_ms(intervals) == pytest.approx(250)

    def test_empty(self):
        assert TimingSimulator.calculate_wall_clock_ms([]) == 0
