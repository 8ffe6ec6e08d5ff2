import numpy as np
import pytest

import pyus.interp as pxi
import pyus.interp.layout as pxl


class TestPlan:
    @pytest.fixture
    def roles(self):
        # axis:    0  1  2  3  4
        x_shape = (8, 1, 3, 5, 1)
        t_shape = (4, 6, 3, 1, 1)
        return pxi.classify(x_shape, t_shape, (4, 1, 3, 1, 1), axis=0)

    def test_canonical_order(self, roles):
        layout = pxl.plan(roles)
        # (sampling, matching, index-outer, inert, data-outer)
        assert layout.order == (0, 2, 1, 4, 3)
        assert layout.sizes == (4, 3, 6, 1, 5)
        assert layout.flags == (
            pxl.FLAG_INDEX,
            pxl.FLAG_MATCHING,
            pxl.FLAG_INDEX,
            pxl.FLAG_INDEX,
            pxl.FLAG_DATA,
        )

    def test_constants(self, roles):
        layout = pxl.plan(roles)
        I, T, S, N, F = layout.constants()  # noqa: E741
        assert (I, T, S, N, F) == (4 * 6, 8, 5, 3, 5)

    def test_strides(self, roles):
        layout = pxl.plan(roles)
        w, y, t, x = layout.strides
        perm = lambda v: tuple(v[d] for d in layout.order)
        assert w == perm((3, 0, 1, 0, 0))
        assert y == perm((6 * 3 * 5, 3 * 5, 5, 1, 0))
        assert t == perm((6 * 3, 3, 1, 0, 0))
        assert x == perm((3 * 5, 0, 5, 1, 0))
        assert x[0] == 15  # tap step along the sampling axis

    def test_out_shape(self, roles):
        assert pxl.plan(roles).out_shape == (4, 6, 3, 5, 1)
        assert pxl.plan(roles, reduce=(0, 3)).out_shape == (1, 6, 3, 1, 1)

    def test_reduce_drops_inert(self, roles):
        layout = pxl.plan(roles, reduce=(1, 4))
        assert layout.reduce == (1,)
        assert layout.out_shape == (4, 1, 3, 5, 1)
        # reduced axes have zero output stride
        assert layout.strides[1][layout.order.index(1)] == 0

    def test_arrays(self, roles):
        arr = pxl.plan(roles).arrays()
        assert arr["sizes"].dtype == np.int64
        assert arr["flags"].dtype == np.uint8
        assert arr["strides"].shape == (4, 5)
        assert np.array_equal(arr["sizes"], (4, 3, 6, 1, 5))

    def test_frozen(self, roles):
        layout = pxl.plan(roles)
        with pytest.raises(AttributeError):
            layout.reduce = (0,)
