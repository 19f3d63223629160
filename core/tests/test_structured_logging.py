"""Tests for run/phase correlation in log records."""

import logging
import unittest

from core.structured_logging import (
    PHASE_INDEX,
    PHASE_SEARCH,
    RunContextFilter,
    get_phase,
    get_run_id,
    phase_scope,
    phase_timings,
    set_run_id,
)


class _CollectingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records = []
        self.addFilter(RunContextFilter())

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


class TestStructuredLogging(unittest.TestCase):
    def setUp(self) -> None:
        self.handler = _CollectingHandler()
        self.logger = logging.getLogger("doxysearch.test")
        self.logger.setLevel(logging.INFO)
        self.logger.addHandler(self.handler)
        self.addCleanup(self.logger.removeHandler, self.handler)

    def test_generated_run_id(self) -> None:
        run_id = set_run_id()
        self.assertEqual(len(run_id), 12)
        self.assertEqual(get_run_id(), run_id)

    def test_explicit_run_id(self) -> None:
        self.assertEqual(set_run_id("run-42"), "run-42")
        self.assertEqual(get_run_id(), "run-42")

    def test_records_carry_run_and_phase(self) -> None:
        set_run_id("run-7")
        with phase_scope("index"):
            self.logger.info("inside")
        self.logger.info("outside")

        inside, outside = self.handler.records
        self.assertEqual(inside.run_id, "run-7")
        self.assertEqual(inside.phase, "index")
        self.assertEqual(outside.phase, "-")

    def test_phase_restored_after_nested_scopes_and_errors(self) -> None:
        with phase_scope("compounds"):
            with self.assertRaises(ValueError):
                with phase_scope("inner"):
                    self.assertEqual(get_phase(), "inner")
                    raise ValueError("boom")
            self.assertEqual(get_phase(), "compounds")
        self.assertEqual(get_phase(), "-")

    def test_phase_timings_accumulate_per_run(self) -> None:
        set_run_id("run-9")
        with phase_scope(PHASE_INDEX):
            pass
        with phase_scope(PHASE_SEARCH):
            pass
        with phase_scope(PHASE_INDEX):
            pass

        timings = phase_timings()
        self.assertEqual(list(timings), [PHASE_INDEX, PHASE_SEARCH])
        self.assertTrue(all(ms >= 0.0 for ms in timings.values()))

        timings.clear()
        self.assertEqual(len(phase_timings()), 2)
        set_run_id("run-10")
        self.assertEqual(phase_timings(), {})


if __name__ == "__main__":
    unittest.main()
