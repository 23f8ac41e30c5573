import pytest

from kotelhw.max7219_geometry import (
    Direction,
    Matrix,
    Point,
    Transform,
    get_transform,
)

POINTS = [Point(x, y) for x in range(-3, 4) for y in range(-2, 3)]


@pytest.mark.parametrize(
    "transform, coefs",
    [
        (Transform.NONE, (1, 0, 0, 1)),
        (Transform.ROTATE_CLOCKWISE, (0, 1, -1, 0)),
        (Transform.ROTATE_COUNTERCLOCKWISE, (0, -1, 1, 0)),
        (Transform.UPSIDEDOWN, (-1, 0, 0, -1)),
        (Transform.MIRROR_H, (-1, 0, 0, 1)),
        (Transform.MIRROR_V, (1, 0, 0, -1)),
    ],
)
def test_get_transform_table(transform, coefs):
    m = get_transform(transform, 5, -7)
    assert (m.a, m.b, m.c, m.d) == coefs
    assert (m.u, m.v) == (5, -7)


def test_get_transform_default_offset():
    m = get_transform(Transform.NONE)
    assert (m.u, m.v) == (0, 0)


@pytest.mark.parametrize("transform", list(Transform))
@pytest.mark.parametrize("u, v", [(0, 0), (4, -9), (-11, 3)])
def test_inverse_round_trip(transform, u, v):
    m = get_transform(transform, u, v)
    inv = ~m
    for p in POINTS:
        assert inv * (m * p) == p
        assert m * (inv * p) == p


def test_identity_translates_points():
    m = get_transform(Transform.NONE, 5, 7)
    assert m * Point(1, 2) == Point(1 + 5, 2 + 7)


def test_direction_ignores_translation():
    m = get_transform(Transform.NONE, 5, 7)
    assert m * Direction(1, 2) == Direction(1, 2)


def test_clockwise_undoes_counterclockwise():
    cw = get_transform(Transform.ROTATE_CLOCKWISE)
    ccw = get_transform(Transform.ROTATE_COUNTERCLOCKWISE)
    for p in POINTS:
        assert cw * (ccw * p) == p


@pytest.mark.parametrize("transform", [Transform.MIRROR_H, Transform.MIRROR_V, Transform.UPSIDEDOWN])
def test_involutions(transform):
    m = get_transform(transform)
    for p in POINTS:
        assert m * (m * p) == p


def test_rotation_applied_four_times_is_identity():
    m = get_transform(Transform.ROTATE_CLOCKWISE)
    for p in POINTS:
        assert m * (m * (m * (m * p))) == p


def test_singular_matrix_inverts_to_zero():
    assert ~Matrix(1, 1, 1, 1, 3, 4) == Matrix()


def test_point_plus_direction():
    assert Point(3, -1) + Direction(2, 5) == Point(3 + 2, -1 + 5)


def test_scalar_multiplication():
    k = 3
    p = Point(4, -2)
    d = Direction(-1, 6)
    assert k * p == Point(k * p.x, k * p.y)
    assert k * d == Direction(k * d.x, k * d.y)


def test_matrix_times_unsupported_raises():
    with pytest.raises(TypeError):
        get_transform(Transform.NONE) * 3


def test_point_plus_point_raises():
    with pytest.raises(TypeError):
        Point(1, 1) + Point(1, 1)