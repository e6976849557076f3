"""Unit tests for the workflow store, state model and text exporter."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from lens_ocr.models.batch import SourceListing
from lens_ocr.models.state import PipelineStatus, WorkflowMode, WorkflowState
from lens_ocr.services.export import TextExporter
from lens_ocr.services.store import WorkflowStore


class TestWorkflowState:
    """Tests for WorkflowState derived values."""

    def test_defaults(self) -> None:
        """Test the idle state."""
        state = WorkflowState()

        assert state.mode == WorkflowMode.IDLE
        assert state.status == PipelineStatus.IDLE
        assert state.total == 0
        assert state.progress == 0.0
        assert not state.is_complete
        assert not state.has_result

    def test_progress_and_counts(self, make_text_listing) -> None:
        """Test progress and the editor counters."""
        listing = make_text_listing(("a", "1"), ("b", "2"), ("c", "3"), ("d", "4"))
        state = WorkflowState(
            mode=WorkflowMode.BATCH,
            items=listing.items,
            cursor=1,
            edited_text="first paragraph\n\n  \nsecond paragraph",
        )

        assert state.total == 4
        assert state.progress == 0.25
        assert state.character_count == len(state.edited_text)
        assert state.paragraph_count == 2
        assert state.has_result


class TestWorkflowStore:
    """Tests for WorkflowStore."""

    def test_load_batch(self, make_text_listing) -> None:
        """Test installing a batch listing."""
        store = WorkflowStore()
        listing = make_text_listing(("a", "1"), ("b", "2"))
        listing.notes.append("Listed 2 files")
        listing.skipped_by_type = 3

        store.load_batch(listing)

        assert store.state.mode == WorkflowMode.BATCH
        assert store.state.total == 2
        assert store.state.cursor == 0
        assert store.state.log == ["Listed 2 files"]
        assert store.state.skipped_by_type == 3

    def test_load_batch_rejects_empty(self) -> None:
        """Test that an empty listing is not installed."""
        with pytest.raises(ValueError):
            WorkflowStore().load_batch(SourceListing(selected_count=2))

    def test_load_single_needs_one_item(self, make_text_listing) -> None:
        """Test that single-item mode takes exactly one item."""
        store = WorkflowStore()

        with pytest.raises(ValueError):
            store.load_single(make_text_listing(("a", "1"), ("b", "2")))

        store.load_single(make_text_listing(("a", "1")))
        assert store.state.mode == WorkflowMode.SINGLE

    def test_load_while_running_rejected(self, make_text_listing) -> None:
        """Test that a running workflow cannot be replaced."""
        store = WorkflowStore()
        store.load_batch(make_text_listing(("a", "1")))
        store.update(is_running=True)

        with pytest.raises(RuntimeError):
            store.load_batch(make_text_listing(("b", "2")))

    def test_snapshot_is_detached(self, make_text_listing) -> None:
        """Test that later updates do not leak into a snapshot."""
        store = WorkflowStore()
        store.load_batch(make_text_listing(("a", "1")))

        snapshot = store.snapshot()
        store.append_log("later")
        store.update(cursor=1)

        assert snapshot.log == []
        assert snapshot.cursor == 0
        assert store.state.log == ["later"]

    def test_subscribers_notified(self, make_text_listing) -> None:
        """Test listener registration and removal."""
        store = WorkflowStore()
        seen: list[WorkflowState] = []
        unsubscribe = store.subscribe(seen.append)

        store.load_batch(make_text_listing(("a", "1")))
        store.edit_text("changed")
        unsubscribe()
        store.reset()

        assert len(seen) == 2
        assert seen[-1].edited_text == "changed"

    def test_reset_bumps_generation(self, make_text_listing) -> None:
        """Test that reset clears state and invalidates runs."""
        store = WorkflowStore()
        store.load_batch(make_text_listing(("a", "1")))
        store.update(accumulated_text="x", edited_text="x", cursor=1)

        store.reset()

        assert store.state.generation == 1
        assert store.state.items == []
        assert store.state.edited_text == ""
        assert store.state.mode == WorkflowMode.IDLE

    def test_generation_survives_load(self, make_text_listing) -> None:
        """Test that loading keeps the current generation."""
        store = WorkflowStore()
        store.reset()
        store.load_batch(make_text_listing(("a", "1")))

        assert store.state.generation == 1


class TestTextExporter:
    """Tests for TextExporter."""

    @staticmethod
    def clock() -> datetime:
        return datetime(2026, 5, 6, 7, 8, 9, tzinfo=UTC)

    def test_filename(self, tmp_path: Path) -> None:
        """Test the timestamped filename."""
        exporter = TextExporter(tmp_path, clock=self.clock)

        assert exporter.filename() == "ocr-output-20260506-070809.txt"

    def test_export_writes_utf8(self, tmp_path: Path) -> None:
        """Test writing text into a created directory."""
        exporter = TextExporter(tmp_path / "out", clock=self.clock)

        path = exporter.export("Grüße\nzweite Zeile")

        assert path.parent == tmp_path / "out"
        assert path.read_text(encoding="utf-8") == "Grüße\nzweite Zeile"

    def test_export_never_overwrites(self, tmp_path: Path) -> None:
        """Test that repeated exports in the same second get new names."""
        exporter = TextExporter(tmp_path, filename_prefix="ocr-test", clock=self.clock)

        first = exporter.export("one")
        second = exporter.export("two")
        third = exporter.export("three")

        assert first.name == "ocr-test-20260506-070809.txt"
        assert second.name == "ocr-test-20260506-070809~1.txt"
        assert third.name == "ocr-test-20260506-070809~2.txt"
        assert first.read_text() == "one"
