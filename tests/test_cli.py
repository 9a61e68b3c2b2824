"""
Tests for the capcolor-cli argument handling (no broker).
"""

import pytest

from capcolor_cli import cli


class TestBuildCommand:

    @pytest.mark.parametrize("argv, expected", [
        (["set-mode", "local"], {"command": "set_mode", "mode": "local"}),
        (["list-zones"], {"command": "list_zones"}),
        (["status"], {"command": "get_status"}),
    ])
    def test_commands(self, argv, expected):
        args = cli.build_parser().parse_args(argv)
        assert cli.build_command(args) == expected

    def test_invalid_mode_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["set-mode", "psychic"])


class TestMain:

    def test_sends_to_service_topic(self, monkeypatch):
        sent = []
        monkeypatch.setattr(cli, "send_command", lambda *args: sent.append(args))

        cli.main(["--service-id", "line_07", "--broker", "mqtt.local", "set-mode", "remote"])

        command, service_id, broker, port, username, password = sent[0]
        assert command == {"command": "set_mode", "mode": "remote"}
        assert (service_id, broker, port) == ("line_07", "mqtt.local", 1883)

    def test_no_command_exits(self):
        with pytest.raises(SystemExit):
            cli.main([])

    def test_command_topic(self):
        assert cli.COMMAND_TOPIC.format(service_id="line_01") == "capcolor/control/line_01/commands"
