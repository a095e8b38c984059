import callapi.client
import tokenauth.coordinator


def test_client_export_surface() -> None:
    for name in ("ApiClient", "create_client", "parse_body"):
        assert hasattr(callapi.client, name)


def test_coordinator_export_surface() -> None:
    assert hasattr(tokenauth.coordinator, "RefreshCoordinator")
