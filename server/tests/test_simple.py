"""Smoke test for application wiring."""


def test_import_app():
    """Test that we can import the app module."""
    from skybook.main import create_app
    app = create_app()
    assert app is not None

    paths = {route.path for route in app.routes}
    assert {"/flights/search", "/bookings", "/sse/connect/{client_id}", "/metrics"} <= paths
