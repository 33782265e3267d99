import numpy as np

from particles import FrameState, RotationDelta
from renderer3d import Renderer3D


def _frame(positions, visible=None, color=(255, 0, 0), stars=None, yaw=0.0):
    positions = np.asarray(positions, dtype=np.float32)
    if stars is None:
        stars = np.zeros((0, 3), dtype=np.float32)
    return FrameState(
        positions=positions,
        visible_count=len(positions) if visible is None else visible,
        color=color,
        rotation_delta=RotationDelta(0.0005, 0.0001),
        group_rotation=yaw,
        background_rotation=0.0,
        stars=np.asarray(stars, dtype=np.float32),
    )


def test_origin_lands_in_centre():
    r = Renderer3D(200, 100)
    px = r.project(np.zeros((1, 3), dtype=np.float32))
    assert px.tolist() == [[100, 50]]


def test_points_behind_camera_dropped():
    r = Renderer3D(200, 100)
    assert len(r.project(np.array([[0.0, 0.0, 60.0]], dtype=np.float32))) == 0


def test_render_uses_colour_as_bgr():
    r = Renderer3D(200, 100)
    img = r.render(_frame([[0, 0, 0]] * 3, color=(255, 0, 0)))
    b, g, rr = img[50, 100]
    assert rr > 0 and g == 0 and b == 0


def test_only_visible_prefix_is_drawn():
    r = Renderer3D(200, 100)
    img = r.render(_frame([[0, 0, 0], [10, 0, 0]], visible=1))
    assert img[50, 100].any()
    assert int(img.sum()) == int(img[50, 100].sum())


def test_overlaps_add_up():
    r = Renderer3D(200, 100)
    one = r.render(_frame([[0, 0, 0]]))
    many = r.render(_frame([[0, 0, 0]] * 4))
    assert many[50, 100, 2] > one[50, 100, 2]


def test_stars_drawn_half_bright():
    r = Renderer3D(200, 100)
    img = r.render(_frame(np.zeros((0, 3)), stars=[[0, 0, 0]]))
    assert img[50, 100].tolist() == [128, 128, 128]


def test_rotation_moves_points():
    r = Renderer3D(200, 100)
    a = r.project(np.array([[10.0, 0, 0]], dtype=np.float32), yaw=0.0)
    b = r.project(np.array([[10.0, 0, 0]], dtype=np.float32), yaw=1.0)
    assert a.tolist() != b.tolist()


def test_none_frame_is_blank():
    img = Renderer3D(20, 10).render(None)
    assert img.shape == (10, 20, 3)
    assert not img.any()
