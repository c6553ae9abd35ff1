import json

import httpx
import pytest

import rewards_engine.__main__ as cli
from rewards_engine.core.settings import Settings
from rewards_engine.services.rewards.client import RewardsApiClient


class _OfflineClient(RewardsApiClient):
    @classmethod
    def from_settings(cls, settings=None, *, http_client=None):
        async def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        client = cls(settings.rewards_api_base_url, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        client._owns_client = True
        return client


@pytest.fixture
def offline_cli(monkeypatch, tmp_path):
    settings = Settings(cache_database_url=f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "RewardsApiClient", _OfflineClient)
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    return settings


def _run(capsys, *argv: str) -> tuple[int, dict]:
    exit_code = cli.main(list(argv))
    return exit_code, json.loads(capsys.readouterr().out)


def test_parse_args() -> None:
    args = cli.parse_args(["purchase", "12.50", "--count", "2"])
    assert args.command == "purchase"
    assert str(args.amount) == "12.50"
    assert args.count == 2

    with pytest.raises(SystemExit):
        cli.parse_args([])


def test_offline_session_round_trip(offline_cli, capsys) -> None:
    exit_code, output = _run(capsys, "purchase", "20")
    assert exit_code == 0
    assert output["pointsEarned"] == 200
    assert output["profile"]["totalPurchases"] == 1
    assert output["profile"]["purchasesToNextTier"] == 4

    exit_code, output = _run(capsys, "show")
    assert exit_code == 0
    assert output["points"] == 200
    assert output["state"] == "ready_stale"
    assert output["unavailable"] is False

    exit_code, output = _run(capsys, "redeem-points", "500")
    assert exit_code == 1
    assert output == {"success": False, "message": "Not enough points", "available": 200}

    exit_code, output = _run(capsys, "redeem-gift")
    assert exit_code == 1

    exit_code, output = _run(capsys, "logout")
    assert output == {"state": "unloaded"}

    exit_code, output = _run(capsys, "show")
    assert output["points"] == 0
    assert output["unavailable"] is True


def test_offline_reference_data(offline_cli, capsys) -> None:
    exit_code, output = _run(capsys, "bundles")
    assert exit_code == 0
    assert output["featured"] == "bundle-mix-10"

    exit_code, output = _run(capsys, "offers", "--category", "Sea Moss")
    assert output["match"]["id"] == "bogo-seamoss"
    assert output["label"] == "BOGO FREE"
