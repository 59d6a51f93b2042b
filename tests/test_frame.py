"""Tests for tile assembly into frames.

Tests cover:
- Frame.tile_ready placement and bounds checking
- is_done only after the last distinct tile
- FrameAssembler with interleaved frames and out-of-order tiles
"""

import numpy as np
import pytest


def make_tile(frame_num, rect, value):
    from sidequest.core.tiles import Tile

    buf = np.full((rect.height, rect.width, 3), value, dtype=np.float32)
    return Tile(frame_num=frame_num, left=rect.left, top=rect.top, buf=buf)


@pytest.fixture
def params():
    from sidequest.core.params import RenderParams

    return RenderParams(width=40, height=20, tile_size=16, tile_queue=2, threads=1)


class TestFrame:
    """Tests for a single frame buffer."""

    def test_tile_written_at_offset(self, params):
        """Test that a tile lands at its (left, top) offset."""
        frame = params.uninitialized_frame()
        rect = list(params.tile_rects())[4]
        frame.tile_ready(make_tile(0, rect, 0.5))

        region = frame.buf[rect.top:rect.top + rect.height, rect.left:rect.left + rect.width]
        assert np.allclose(region, 0.5)
        assert np.count_nonzero(frame.buf) == rect.pixel_count * 3

    def test_is_done_exactly_at_last_tile(self, params):
        """Test is_done turns true with the last tile and not before."""
        frame = params.uninitialized_frame()
        rects = list(params.tile_rects())
        for rect in reversed(rects):
            assert not frame.is_done()
            frame.tile_ready(make_tile(0, rect, 1.0))
        assert frame.is_done()
        assert np.allclose(frame.buf, 1.0)

    def test_duplicate_tile_counts_once(self, params):
        """Test that re-sending a tile does not complete the frame early."""
        frame = params.uninitialized_frame()
        rect = next(params.tile_rects())
        for _ in range(params.tiles_per_frame()):
            frame.tile_ready(make_tile(0, rect, 1.0))
        assert frame.tiles_received == 1
        assert not frame.is_done()

    def test_tile_outside_frame_rejected(self, params):
        """Test that a tile that does not fit raises ValueError."""
        from sidequest.core.tiles import Tile

        frame = params.uninitialized_frame()
        tile = Tile(frame_num=0, left=32, top=16, buf=np.zeros((16, 16, 3), dtype=np.float32))
        with pytest.raises(ValueError):
            frame.tile_ready(tile)


class TestFrameAssembler:
    """Tests for multi-frame assembly."""

    def test_interleaved_frames(self, params):
        """Test that tiles of two frames arriving interleaved complete both."""
        from sidequest.core.frame import FrameAssembler

        completed = []
        assembler = FrameAssembler(params, on_frame=lambda num, frame: completed.append((num, frame)))
        rects = list(params.tile_rects())

        for i, rect in enumerate(rects):
            assembler.add_tile(make_tile(1, rect, 1.0))
            if i < len(rects) - 1:
                assembler.add_tile(make_tile(0, rects[-1 - i], 0.25))

        assert [num for num, _ in completed] == [1]
        assert assembler.in_flight == [0]

        assembler(make_tile(0, rects[0], 0.25))
        assert [num for num, _ in completed] == [1, 0]
        assert np.allclose(completed[0][1].buf, 1.0)
        assert np.allclose(completed[1][1].buf, 0.25)
        assert assembler.in_flight == []

    def test_add_tile_returns_completed_frame(self, params):
        """Test that add_tile returns the frame only when it completes."""
        from sidequest.core.frame import FrameAssembler

        assembler = FrameAssembler(params)
        rects = list(params.tile_rects())
        results = [assembler.add_tile(make_tile(3, rect, 0.5)) for rect in rects]

        assert all(r is None for r in results[:-1])
        assert results[-1] is not None
        assert results[-1].is_done()
