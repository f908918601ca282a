"""Tests for the click CLI using a fake engine."""

from click.testing import CliRunner

from alacrite import cli as cli_module
from alacrite.cli import cli, peer_table
from alacrite.node import AlacriteNode

from conftest import FakeEngine, FakeResolver, resolved


def patch_node(monkeypatch, engine):
    def factory(config):
        config.receive_timeout = 0.05
        return AlacriteNode(config, engine=engine, resolver=FakeResolver())

    monkeypatch.setattr(cli_module, "AlacriteNode", factory)


class TestCli:
    def test_peers_lists_discovered(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        engine = FakeEngine(events=[resolved("Peer1._alacrite._tcp.local.", "192.168.1.20.local.")])
        patch_node(monkeypatch, engine)

        result = CliRunner().invoke(cli, ["peers", "--wait", "0.3"])
        assert result.exit_code == 0, result.output
        assert "Peer1._alacrite._tcp.local." in result.output
        assert engine.closed

    def test_peers_none_found(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        patch_node(monkeypatch, FakeEngine())

        result = CliRunner().invoke(cli, ["peers", "--wait", "0"])
        assert result.exit_code == 0, result.output
        assert "No peers found" in result.output

    def test_startup_failure_exits_nonzero(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        engine = FakeEngine()
        engine.fail_register = True
        patch_node(monkeypatch, engine)

        result = CliRunner().invoke(cli, ["start", "--no-api"])
        assert result.exit_code == 1
        assert "Startup failed" in result.output

    def test_peer_table(self):
        table = peer_table({"Peer1._alacrite._tcp.local.": "192.168.1.20.local."})
        assert table.row_count == 1
