import io
import time
import unittest

from benchdiff.ui.progress import SPINNER_CHARS, ProgressReporter, fraction


class _BrokenWriter(io.StringIO):
    def write(self, s: str) -> int:
        raise OSError("terminal went away")


class _TTYWriter(io.StringIO):
    def isatty(self) -> bool:
        return True


class TestFraction(unittest.TestCase):
    def test_numerator_is_padded_to_denominator_width(self) -> None:
        self.assertEqual(" 3/10", fraction(3, 10))
        self.assertEqual("10/10", fraction(10, 10))
        self.assertEqual("0/5", fraction(0, 5))
        self.assertEqual("  7/100", fraction(7, 100))


class TestProgressReporter(unittest.TestCase):
    def test_update_and_stop_render_prefix_progress_and_spinner(self) -> None:
        out = io.StringIO()
        with ProgressReporter(out, "building", interval=0.01) as progress:
            progress.update("1/3")
            progress.update("3/3")

        text = out.getvalue()
        self.assertIn("\rbuilding 3/3 ", text)
        self.assertTrue(text.endswith("\n"))
        self.assertNotIn("\x1b[K", text)
        self.assertEqual("stopped", progress.state)

    def test_line_keeps_redrawing_without_new_progress(self) -> None:
        out = io.StringIO()
        progress = ProgressReporter(out, "waiting", interval=0.01)
        progress.start()
        progress.update("1/1")
        time.sleep(0.15)
        progress.stop()

        text = out.getvalue()
        self.assertGreaterEqual(text.count("\rwaiting 1/1 "), 3)
        glyphs = {line.rstrip("\n")[-1] for line in text.split("\r") if line}
        self.assertTrue(glyphs <= set(SPINNER_CHARS))
        self.assertGreater(len(glyphs), 1)

    def test_tty_output_clears_to_end_of_line(self) -> None:
        out = _TTYWriter()
        with ProgressReporter(out, "x", interval=0.01) as progress:
            progress.update("a")
        self.assertIn("\x1b[K", out.getvalue())

    def test_lifecycle_errors(self) -> None:
        progress = ProgressReporter(io.StringIO(), interval=0.01)
        with self.assertRaises(RuntimeError):
            progress.update("too early")

        progress.start()
        with self.assertRaises(RuntimeError):
            progress.start()
        progress.stop()
        progress.stop()  # idempotent

        with self.assertRaises(RuntimeError):
            progress.update("too late")
        with self.assertRaises(RuntimeError):
            progress.start()

    def test_stop_without_start(self) -> None:
        out = io.StringIO()
        progress = ProgressReporter(out)
        progress.stop()
        self.assertEqual("stopped", progress.state)
        self.assertEqual("", out.getvalue())

    def test_writer_failure_is_raised_from_stop(self) -> None:
        progress = ProgressReporter(_BrokenWriter(), "x", interval=10)
        progress.start()
        with self.assertRaises(OSError):
            progress.stop()

    def test_update_returns_only_after_renderer_took_the_value(self) -> None:
        out = io.StringIO()
        with ProgressReporter(out, "tight loop", interval=0.01) as progress:
            for i in range(20):
                progress.update(fraction(i, 20))
                self.assertTrue(progress._queue.empty())
        self.assertIn("tight loop 19/20", out.getvalue())

    def test_error_in_block_is_not_replaced_by_writer_failure(self) -> None:
        with self.assertRaises(KeyError):
            with ProgressReporter(_BrokenWriter(), "x", interval=10):
                raise KeyError("build failed")

    def test_writer_failure_is_raised_from_update(self) -> None:
        progress = ProgressReporter(_BrokenWriter(), "x", interval=0.01)
        progress.start()
        # The first tick fails and ends the renderer thread.
        progress._thread.join(timeout=5)
        self.assertFalse(progress._thread.is_alive())
        with self.assertRaises(OSError):
            progress.update("1/2")


if __name__ == "__main__":
    unittest.main()
