"""Unit tests for gpu_monitor.data.merger module."""

import unittest

from gpu_monitor.data.merger import merge_entry, merge_processes
from gpu_monitor.models import ProcessType, RawProcess
from tests.fakes import MIB, names


class TestMergeEntry(unittest.TestCase):
    """Test combining two observations of one PID."""

    def test_first_observation_keeps_its_type(self):
        self.assertEqual(merge_entry(None, None, ProcessType.COMPUTE, 10), (ProcessType.COMPUTE, 10))

    def test_compute_and_graphics_become_mixed(self):
        kind, _ = merge_entry(ProcessType.COMPUTE, 100, ProcessType.GRAPHICS, 50)
        self.assertEqual(kind, ProcessType.MIXED)

    def test_memory_is_max_not_sum(self):
        _, memory = merge_entry(ProcessType.COMPUTE, 100, ProcessType.GRAPHICS, 50)
        self.assertEqual(memory, 100)

    def test_missing_memory_counts_as_zero(self):
        self.assertEqual(merge_entry(None, None, ProcessType.GRAPHICS, None), (ProcessType.GRAPHICS, 0))

    def test_same_type_twice_is_not_mixed(self):
        self.assertEqual(
            merge_entry(ProcessType.COMPUTE, 10, ProcessType.COMPUTE, 30),
            (ProcessType.COMPUTE, 30),
        )

    def test_unknown_yields_to_known_type(self):
        self.assertEqual(
            merge_entry(ProcessType.UNKNOWN, 0, ProcessType.GRAPHICS, 5),
            (ProcessType.GRAPHICS, 5),
        )


class TestMergeProcesses(unittest.TestCase):
    """Test merging full compute and graphics lists."""

    def test_pid_in_both_lists(self):
        """PID 1000 at 2 GiB compute and 1 GiB graphics is one Mixed row at 2 GiB."""
        records = merge_processes(
            [RawProcess(1000, 2048 * MIB)],
            [RawProcess(1000, 1024 * MIB)],
            names({1000: "blender"}),
        )
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].process_type, ProcessType.MIXED)
        self.assertEqual(records[0].gpu_memory_mib, 2048)
        self.assertEqual(records[0].name, "blender")

    def test_graphics_reading_larger_than_compute(self):
        records = merge_processes([RawProcess(10, 100)], [RawProcess(10, 150)], names())
        self.assertEqual(
            [(r.pid, r.process_type, r.gpu_memory) for r in records],
            [(10, ProcessType.MIXED, 150)],
        )

    def test_disjoint_lists(self):
        records = merge_processes(
            [RawProcess(1, 300)],
            [RawProcess(2, 500)],
            names(),
        )
        self.assertEqual([(r.pid, r.process_type) for r in records], [(2, ProcessType.GRAPHICS), (1, ProcessType.COMPUTE)])

    def test_pids_are_unique(self):
        records = merge_processes(
            [RawProcess(1, 10), RawProcess(2, 20), RawProcess(1, 15)],
            [RawProcess(2, 5), RawProcess(3, 1)],
            names(),
        )
        pids = [record.pid for record in records]
        self.assertEqual(sorted(pids), [1, 2, 3])
        self.assertEqual(len(pids), len(set(pids)))

    def test_sorted_descending_and_stable(self):
        """Ties keep their first-seen order."""
        records = merge_processes(
            [RawProcess(10, 50), RawProcess(11, 200), RawProcess(12, 200), RawProcess(13, 10)],
            [],
            names(),
        )
        self.assertEqual([r.gpu_memory for r in records], [200, 200, 50, 10])
        self.assertEqual([r.pid for r in records], [11, 12, 10, 13])

    def test_missing_memory_sorts_as_zero(self):
        records = merge_processes([RawProcess(1, None), RawProcess(2, 1)], [], names())
        self.assertEqual([(r.pid, r.gpu_memory) for r in records], [(2, 1), (1, 0)])

    def test_empty_inputs(self):
        self.assertEqual(merge_processes([], [], names()), [])

    def test_unresolvable_name_falls_back(self):
        def failing(pid):
            raise PermissionError(pid)

        records = merge_processes([RawProcess(1, 1)], [RawProcess(2, 2)], failing)
        self.assertEqual({r.name for r in records}, {"unknown"})

    def test_empty_name_falls_back(self):
        records = merge_processes([RawProcess(1, 1)], [], lambda pid: "")
        self.assertEqual(records[0].name, "unknown")


if __name__ == "__main__":
    unittest.main()
