import pytest

from locator.event_loop import EventLoop
from locator.icons import icon_for
from locator.surface import LatLngBounds, MapSurface, Marker, TileLayer, project, unproject


def make_surface(loop: EventLoop, size=(800, 600)) -> MapSurface:
    return MapSurface("main-map", loop, center=(59.3293, 18.0686), zoom=12, size_provider=lambda: size)


def test_projection_round_trips_within_web_mercator_limits() -> None:
    x, y = project(59.3293, 18.0686, 13)
    lat, lng = unproject(x, y, 13)

    assert lat == pytest.approx(59.3293)
    assert lng == pytest.approx(18.0686)


def test_bounds_from_points() -> None:
    bounds = LatLngBounds.from_points([(59.33, 18.06), (59.31, 18.07), (59.34, 18.02)])

    assert (bounds.south, bounds.west, bounds.north, bounds.east) == (59.31, 18.02, 59.34, 18.07)
    assert bounds.center == pytest.approx((59.325, 18.045))
    assert bounds.is_valid()
    assert LatLngBounds.from_points([]) is None


def test_fly_to_commits_camera_immediately_and_fires_on_end_after_duration(loop: EventLoop) -> None:
    surface = make_surface(loop)
    finished: list[bool] = []

    transition = surface.fly_to((59.3326, 18.0649), 16, duration=1.5, ease_linearity=0.25, on_end=lambda: finished.append(True))

    assert surface.get_center() == (59.3326, 18.0649)
    assert surface.get_zoom() == 16
    assert transition.kind == "fly_to"
    loop.advance(1.4)
    assert finished == []
    loop.advance(0.1)
    assert finished == [True]


def test_zoom_is_clamped(loop: EventLoop) -> None:
    surface = make_surface(loop)

    surface.set_view((0, 0), 42)
    assert surface.get_zoom() == 19
    surface.set_view((0, 0), -3)
    assert surface.get_zoom() == 0


def test_bounds_zoom_for_single_point_uses_max_zoom(loop: EventLoop) -> None:
    surface = make_surface(loop)
    bounds = LatLngBounds.from_points([(59.33, 18.06)])

    assert surface.get_bounds_zoom(bounds, padding=50, max_zoom=15) == 15


def test_bounds_zoom_shrinks_for_wider_bounds(loop: EventLoop) -> None:
    surface = make_surface(loop)
    near = LatLngBounds.from_points([(59.33, 18.06), (59.34, 18.07)])
    far = LatLngBounds.from_points([(59.33, 18.06), (57.70, 11.97)])

    assert surface.get_bounds_zoom(far) < surface.get_bounds_zoom(near)


def test_fly_to_bounds_centers_inside_the_bounds(loop: EventLoop) -> None:
    surface = make_surface(loop)
    bounds = LatLngBounds.from_points([(59.31, 18.02), (59.34, 18.07)])

    surface.fly_to_bounds(bounds, padding=50, duration=1.5, ease_linearity=0.25, max_zoom=15)

    lat, lng = surface.get_center()
    assert bounds.south <= lat <= bounds.north
    assert bounds.west <= lng <= bounds.east
    assert surface.transitions[-1].kind == "fly_to_bounds"


def test_invalidate_size_rereads_container(loop: EventLoop) -> None:
    size = [(800, 600)]
    surface = MapSurface("main-map", loop, center=(0, 0), zoom=3, size_provider=lambda: size[0])

    size[0] = (1280, 420)
    surface.invalidate_size()

    assert surface.size == (1280, 420)
    assert surface.size_invalidations == 1


def test_layers_are_added_once_and_markers_filtered(loop: EventLoop) -> None:
    surface = make_surface(loop)
    tiles = TileLayer("https://tiles.example.com/{z}/{x}/{y}.png")
    marker = Marker(59.33, 18.06, icon_for("hygien"))

    surface.add_layer(tiles)
    surface.add_layer(tiles)
    surface.add_layer(marker)

    assert surface.tile_layers == [tiles]
    assert surface.markers == [marker]
    surface.remove_layer(marker)
    assert surface.markers == []
    assert not surface.has_layer(marker)


def test_marker_click_invokes_handler() -> None:
    clicked: list[int] = []
    marker = Marker(59.33, 18.06, icon_for("mat-gemenskap"), on_click=lambda: clicked.append(1))

    marker.click()
    Marker(59.33, 18.06, icon_for("")).click()

    assert clicked == [1]
