"""End-to-end tests for the click CLI against a temporary data directory."""

import pytest
from click.testing import CliRunner

from marketplace.domain.model.actor import Role
from marketplace.infrastructure.cli.main import cli
from marketplace.infrastructure.config import get_settings
from marketplace.infrastructure.security.tokens import TokenIdentityProvider

SECRET = "cli-test-secret"


@pytest.fixture
def runner(tmp_path, monkeypatch) -> CliRunner:
    monkeypatch.setenv("MARKETPLACE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("MARKETPLACE_SECRET_KEY", SECRET)
    monkeypatch.setenv("MARKETPLACE_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("MARKETPLACE_TOKEN", raising=False)
    get_settings.cache_clear()
    yield CliRunner()
    get_settings.cache_clear()


def _token(identity: str, role: Role) -> str:
    return TokenIdentityProvider(SECRET).issue(identity, role)


def _invoke(runner: CliRunner, *args: str, ok: bool = True):
    result = runner.invoke(cli, list(args))
    if ok:
        assert result.exit_code == 0, result.output
    return result


def _start_session(runner: CliRunner) -> str:
    result = _invoke(runner, "session", "start", "--device", "phone")
    line = next(row for row in result.output.splitlines() if row.startswith("Token:"))
    return line.split()[-1]


def _add_burger(runner: CliRunner, stock: int = 5) -> None:
    result = _invoke(
        runner, "product", "add", "--name", "Burger", "--price", "10.00",
        "--store", "s1", "--stock", str(stock),
    )
    assert "Product #1 'Burger' added at $10.00" in result.output


class TestProductCommands:

    def test_add_and_list(self, runner):
        _add_burger(runner)
        result = _invoke(runner, "product", "list", "--store", "s1")
        assert "Burger" in result.output

    def test_bad_price(self, runner):
        result = _invoke(
            runner, "product", "add", "--name", "X", "--price", "abc", "--store", "s1", ok=False
        )
        assert result.exit_code == 1
        assert "Invalid money amount" in result.output


class TestGuestCheckout:

    def test_guest_places_order_and_store_moves_it(self, runner):
        _add_burger(runner)
        guest = _start_session(runner)

        result = _invoke(runner, "cart", "add", "--token", guest, "--product", "1", "--qty", "2")
        assert "(2 items)" in result.output

        result = _invoke(
            runner, "order", "place", "--token", guest, "--store", "s1",
            "--items", "1:2", "--fee", "3.00", "--name", "Ada",
        )
        assert "Order #1 placed." in result.output
        assert "$23.00" in result.output

        store = _token("s1", Role.STORE)
        result = _invoke(runner, "order", "move", "--token", store, "--id", "1", "--action", "accept")
        assert "Order #1: accept -> accepted" in result.output

        result = _invoke(
            runner, "order", "move", "--token", store, "--id", "1", "--action", "reject", ok=False
        )
        assert result.exit_code == 1
        assert "Cannot reject" in result.output

        result = _invoke(runner, "order", "guest", "--guest", guest)
        assert "accepted" in result.output

        result = _invoke(runner, "order", "show", "--token", store, "--id", "1")
        assert "Progress: 20%" in result.output

    def test_login_merges_guest_cart(self, runner):
        _add_burger(runner)
        guest = _start_session(runner)
        _invoke(runner, "cart", "add", "--token", guest, "--product", "1", "--qty", "3")

        user = _token("alice", Role.CUSTOMER)
        result = _invoke(runner, "cart", "merge", "--token", user, "--guest", guest)
        assert "Cart user:alice  (3 items)" in result.output

        result = _invoke(runner, "cart", "show", "--token", user)
        assert "$30.00" in result.output

    def test_placing_from_an_empty_cart_fails(self, runner):
        _add_burger(runner)
        user = _token("bob", Role.CUSTOMER)
        result = _invoke(
            runner, "order", "place", "--token", user, "--store", "s1", "--items", "1:1", ok=False
        )
        assert result.exit_code == 1
        assert "Cart is empty" in result.output

    def test_bad_items_format(self, runner):
        user = _token("bob", Role.CUSTOMER)
        result = _invoke(
            runner, "order", "place", "--token", user, "--store", "s1", "--items", "oops", ok=False
        )
        assert result.exit_code == 2


class TestMiscCommands:

    def test_token_issue(self, runner):
        result = _invoke(runner, "token", "issue", "--identity", "d1", "--role", "driver")
        actor = TokenIdentityProvider(SECRET).resolve(result.output.strip().splitlines()[-1])
        assert (actor.identity, actor.role) == ("d1", Role.DRIVER)

    def test_bad_token(self, runner):
        result = _invoke(runner, "cart", "show", "--token", "garbage", ok=False)
        assert result.exit_code == 1
        assert "could not be verified" in result.output

    def test_session_check_and_extend(self, runner):
        guest = _start_session(runner)
        assert "active until" in _invoke(runner, "session", "check", "--guest", guest).output
        result = _invoke(runner, "session", "extend", "--guest", guest, "--hours", "48")
        assert "Token:" in result.output

    def test_sweep(self, runner):
        _start_session(runner)
        result = _invoke(runner, "sweep", "run")
        assert "Deleted 0 sessions" in result.output
        result = _invoke(runner, "sweep", "stats")
        assert "Active sessions:   1" in result.output

    def test_dashboard(self, runner):
        store = _token("s1", Role.STORE)
        result = _invoke(runner, "order", "dashboard", "--token", store)
        assert "Dashboard for store:s1" in result.output
        assert "Revenue:        $0.00" in result.output
