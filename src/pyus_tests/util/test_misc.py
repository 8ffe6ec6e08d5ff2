import pytest

import pyus.util as pxu


class TestBroadcastSeq:
    @pytest.mark.parametrize(
        ["x", "N", "out"],
        [
            [1, None, (1,)],
            [(1, 2), None, (1, 2)],
            [[3], 4, (3, 3, 3, 3)],
            ["ab", 2, ("ab", "ab")],  # strings are not sequences here
            [range(3), 3, (0, 1, 2)],
        ],
    )
    def test_value(self, x, N, out):
        assert pxu.broadcast_seq(x, N) == out

    def test_cast(self):
        assert pxu.broadcast_seq([1.0, 2.5], cast=int) == (1, 2)

    def test_bad_length(self):
        with pytest.raises(AssertionError):
            pxu.broadcast_seq((1, 2), 3)


class TestNormalizeAxes:
    @pytest.mark.parametrize(
        ["axes", "ndim", "out"],
        [
            [None, 3, ()],
            [(), 3, ()],
            [0, 3, (0,)],
            [-1, 3, (2,)],
            [(2, 0, -3), 3, (0, 2)],  # sorted, de-duplicated
        ],
    )
    def test_value(self, axes, ndim, out):
        assert pxu.normalize_axes(axes, ndim) == out

    @pytest.mark.parametrize("axes", [3, -4, (0, 5)])
    def test_out_of_bounds(self, axes):
        with pytest.raises(ValueError):
            pxu.normalize_axes(axes, 3)


class TestPadShape:
    def test_pad(self):
        assert pxu.pad_shape((4,), 3) == (4, 1, 1)
        assert pxu.pad_shape(5, 2) == (5, 1)
        assert pxu.pad_shape((), 2) == (1, 1)

    def test_noop(self):
        assert pxu.pad_shape((2, 3), 2) == (2, 3)

    def test_too_long(self):
        with pytest.raises(AssertionError):
            pxu.pad_shape((1, 2, 3), 2)


class TestStrides:
    @pytest.mark.parametrize(
        ["shape", "out"],
        [
            [(4,), (1,)],
            [(2, 3, 4), (12, 4, 1)],
            [(2, 1, 4), (4, 0, 1)],
            [(1, 1), (0, 0)],
            [(3, 1), (1, 0)],
        ],
    )
    def test_value(self, shape, out):
        assert pxu.strides(shape) == out
